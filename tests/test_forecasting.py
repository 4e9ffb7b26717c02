# tests/test_forecasting.py
import logging

import numpy as np
import pytest
import torch

from sales_forecaster.forecasting import (
    TrainingError,
    evaluate_fit,
    forecast_products,
    train_and_forecast,
)
from sales_forecaster.postprocessing import ForecastPoint
from sales_forecaster.preprocessing import QuantityScale, preprocess_sales_data


class ConstantModel(torch.nn.Module):
    """returns a fixed normalised value and records every input window"""

    def __init__(self, value: float):
        super().__init__()
        self.value = value
        self.seen = []

    def forward(self, x):
        self.seen.append(x.clone())
        return torch.full((x.shape[0], 1), self.value)


class FailingModel(torch.nn.Module):
    def __init__(self, fail_on_call: int):
        super().__init__()
        self.weight = torch.nn.Parameter(torch.zeros(1))
        self.calls = 0
        self.fail_on_call = fail_on_call

    def forward(self, x):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise RuntimeError("model exploded")
        return torch.sigmoid(self.weight).expand(x.shape[0], 1)


def test_one_point_per_product_by_default(two_product_sales):
    data = preprocess_sales_data(two_product_sales)
    model = ConstantModel(0.5)

    forecasts = forecast_products(model, data, window_size=6)

    assert [f.product for f in forecasts] == ["Widget", "Gadget"]
    # 0.5 on [20, 50] -> 35, labelled with the month after 2023-03
    assert forecasts[0].predictions == [ForecastPoint("2023-04", 35)]
    assert forecasts[1].predictions == [ForecastPoint("2023-04", 35)]


def test_inference_windows_follow_last_offset(two_product_sales):
    data = preprocess_sales_data(two_product_sales)
    model = ConstantModel(0.1)

    forecast_products(model, data, window_size=6)

    assert len(model.seen) == 2
    widget_window, gadget_window = model.seen
    assert widget_window.shape == (1, 6, 2)
    assert widget_window[0, :, 0].tolist() == [6, 7, 8, 9, 10, 11]
    assert widget_window[0, :, 1].tolist() == [0] * 6
    assert gadget_window[0, :, 1].tolist() == [1] * 6


def test_multi_step_horizon_uses_consecutive_months(single_product_sales):
    data = preprocess_sales_data(single_product_sales)
    model = ConstantModel(1.0)

    forecasts = forecast_products(model, data, window_size=6, horizon=3)

    assert [p.calendar_month for p in forecasts[0].predictions] == ["2023-09", "2023-10", "2023-11"]
    assert [p.predicted_quantity for p in forecasts[0].predictions] == [80, 80, 80]
    assert [w[0, 0, 0].item() for w in model.seen] == [8, 9, 10]


def test_invalid_horizon_raises(single_product_sales):
    data = preprocess_sales_data(single_product_sales)
    with pytest.raises(ValueError):
        forecast_products(ConstantModel(0.5), data, horizon=0)


def test_evaluate_fit_reports_unit_errors():
    model = ConstantModel(0.5)
    X = np.zeros((2, 6, 2), dtype=np.float32)
    y = np.array([[0.0], [1.0]], dtype=np.float32)

    metrics = evaluate_fit(model, X, y, QuantityScale(min=10.0, max=80.0), device="cpu")

    # predictions 45, actuals 10 and 80
    assert metrics == {"mae": 35.0, "rmse": 35.0, "n_samples": 2}


def test_evaluate_fit_on_empty_inputs():
    assert evaluate_fit(ConstantModel(0.5), np.zeros((0, 6, 2)), np.zeros((0, 1)), QuantityScale(0, 1)) == {}


def test_train_and_forecast_end_to_end(single_product_sales):
    progress = []
    result = train_and_forecast(
        single_product_sales,
        epochs=2,
        progress_callback=lambda epoch, loss: progress.append(epoch),
        device="cpu",
        seed=0
    )

    assert progress == [0, 1]
    assert len(result.history["loss"]) == 2
    assert result.preprocessed.last_month == "2023-08"
    assert len(result.forecasts) == 1
    point = result.forecasts[0].predictions[0]
    assert point.calendar_month == "2023-09"
    assert 10 <= point.predicted_quantity <= 80
    assert set(result.metrics) == {"mae", "rmse", "n_samples"}


def test_train_and_forecast_with_constant_quantities(single_product_sales):
    single_product_sales["quantity_sold"] = 25.0

    result = train_and_forecast(single_product_sales, epochs=1, device="cpu", seed=0)

    assert result.forecasts[0].predictions[0].predicted_quantity == 25


def test_too_few_rows_is_training_error(single_product_sales):
    with pytest.raises(TrainingError, match="Error training model: Need more than 6 rows"):
        train_and_forecast(single_product_sales.iloc[:6], epochs=1, device="cpu")


def test_model_failure_mid_loop_propagates(two_product_sales):
    model = FailingModel(fail_on_call=2)
    data = preprocess_sales_data(two_product_sales)

    with pytest.raises(RuntimeError, match="model exploded"):
        forecast_products(model, data, window_size=6)


def test_training_failure_is_wrapped(two_product_sales):
    model = FailingModel(fail_on_call=1)
    with pytest.raises(TrainingError, match="model exploded") as excinfo:
        train_and_forecast(two_product_sales, epochs=1, model=model, device="cpu")
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_small_dataset_warns_about_validation_once(single_product_sales, caplog):
    with caplog.at_level(logging.WARNING):
        result = train_and_forecast(single_product_sales.iloc[:7], epochs=1, device="cpu", seed=0)

    warnings = [r for r in caplog.records if "Too few samples" in r.getMessage()]
    assert len(warnings) == 1
    assert result.history["val_loss"] == []
    assert result.metrics["n_samples"] == 1


def test_zero_epochs_is_training_error(single_product_sales):
    with pytest.raises(TrainingError, match="epochs must be at least 1"):
        train_and_forecast(single_product_sales, epochs=0, device="cpu")
