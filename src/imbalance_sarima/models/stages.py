"""Pipeline stage bookkeeping shared by the runners."""

import logging
import time
from contextlib import contextmanager

logger = logging.getLogger(__name__)


@contextmanager
def stage(name: str):
    """Time a pipeline stage; failures are logged with the stage name and re-raised."""
    logger.info(f"▶ Stage: {name}")
    start_time = time.time()
    try:
        yield
    except Exception as e:
        logger.error(f"✗ Stage '{name}' failed: {type(e).__name__}: {e}")
        raise
    logger.info(f"✓ Stage '{name}' done in {time.time() - start_time:.2f}s")
