import logging

import mlflow
import numpy as np
import pytest

from imbalance_sarima.data.writers import read_forecast
from imbalance_sarima.exceptions import ParseError
from imbalance_sarima import settings
from imbalance_sarima.models import pipeline_runner
from imbalance_sarima.models.grid_search_runner import GridSearchRunner
from imbalance_sarima.models.pipeline_runner import run_sarima_pipeline

ORDER = (1, 0, 0)
SEASONAL_ORDER = (0, 1, 1, 4)


def _run(data_csv, tmp_path, **kwargs):
    return run_sarima_pipeline(
        data_path=str(data_csv),
        output_path=tmp_path / "forecasts" / "sarima.csv",
        order=kwargs.pop('order', ORDER),
        seasonal_order=kwargs.pop('seasonal_order', SEASONAL_ORDER),
        frequency=4,
        use_mlflow=False,
        **kwargs
    )


def test_pipeline_writes_test_range_forecast(data_csv, tmp_path):
    result = _run(data_csv, tmp_path)

    data_split = result['split']
    written = read_forecast(result['output_path'])
    assert len(written) == len(data_split.test) == 30
    assert written.index.equals(data_split.test.index)
    np.testing.assert_allclose(written.to_numpy(), result['forecast'].to_numpy(), rtol=1e-9)
    assert set(result['metrics']) == {'MAE', 'RMSE', 'MASE'}


def test_pipeline_first_forecast_matches_native(data_csv, tmp_path):
    result = _run(data_csv, tmp_path)
    forecaster = result['forecaster']
    assert result['forecast'].iloc[0] == pytest.approx(forecaster.native_one_step(), rel=1e-6)


def test_pipeline_order_from_search_results(data_csv, tmp_path):
    table = GridSearchRunner(
        data_path=str(data_csv),
        grid_name='sarima_smoke',
        grid_overrides={'d_vals': [0], 'period': 4},
        output_path=tmp_path / "sarima_order.csv",
        n_jobs=1,
        show_progress=False
    ).run()

    result = _run(data_csv, tmp_path, order_from=tmp_path / "sarima_order.csv")
    best = table.dropna().iloc[0]
    assert result['forecaster'].order == (int(best['p']), int(best['d']), int(best['q']))
    assert result['forecaster'].seasonal_order == (int(best['P']), int(best['D']), int(best['Q']), 4)


def test_pipeline_bad_input_raises_parse_error(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("start_date,Imbalance\n2023-01-01 00:00:00,abc\n")

    with pytest.raises(ParseError):
        _run(path, tmp_path)


def test_main_exits_nonzero_on_failure(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        code = pipeline_runner.main(["--data", str(tmp_path / "missing.csv"), "--no-mlflow"])

    assert code == 1
    assert "Stage 'load' failed" in caplog.text
    assert not (tmp_path / "sarima.csv").exists()


def test_main_success(data_csv, tmp_path):
    output = tmp_path / "sarima.csv"
    code = pipeline_runner.main([
        "--data", str(data_csv), "--output", str(output),
        "--order", "1", "0", "0", "--seasonal-order", "0", "1", "1", "4",
        "--no-mlflow",
    ])

    assert code == 0
    assert output.read_text().startswith("start_date,sarima\n")


def test_pipeline_logs_to_mlflow(data_csv, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    uri = f"sqlite:///{(tmp_path / 'mlflow.db').as_posix()}"

    result = run_sarima_pipeline(
        data_path=str(data_csv),
        output_path=tmp_path / "sarima.csv",
        order=ORDER,
        seasonal_order=SEASONAL_ORDER,
        frequency=4,
        mlflow_uri=uri
    )

    run = mlflow.get_run(result['mlflow_run_id'])
    assert run.data.params['order'] == str(ORDER)
    assert 'RMSE' in run.data.metrics



def test_main_default_tracking_store(data_csv, tmp_path, monkeypatch):
    monkeypatch.delenv("MLFLOW_TRACKING_URI", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(settings, "OUTPUT_DIR", tmp_path)
    output = tmp_path / "sarima.csv"

    code = pipeline_runner.main([
        "--data", str(data_csv), "--output", str(output),
        "--order", "1", "0", "0", "--seasonal-order", "0", "1", "1", "4",
    ])

    assert code == 0
    assert output.exists()
    assert (tmp_path / "mlflow.db").exists()
    assert settings.mlflow_uri_from_env().startswith("sqlite:///")


def test_tracking_failure_names_stage(data_csv, tmp_path, monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise RuntimeError("tracking server unavailable")

    monkeypatch.setattr(pipeline_runner, "_log_to_mlflow", broken)
    with caplog.at_level(logging.ERROR):
        with pytest.raises(RuntimeError):
            run_sarima_pipeline(
                data_path=str(data_csv),
                output_path=tmp_path / "sarima.csv",
                order=ORDER,
                seasonal_order=SEASONAL_ORDER,
                frequency=4
            )

    assert "Stage 'track' failed" in caplog.text
