"""Error types raised across the forecasting pipeline."""


class ParseError(ValueError):
    """Malformed input row (timestamp or value). Fatal, nothing is loaded."""


class FitFailure(RuntimeError):
    """A single grid-search candidate could not be fitted or refitted."""


class CandidateTimeout(FitFailure):
    """A candidate fit ran past its deadline."""


class ConvergenceError(RuntimeError):
    """The final model fit failed to estimate parameters."""
