# tests/test_postprocessing.py
import pandas as pd
import pytest

from sales_forecaster.postprocessing import (
    ForecastPoint,
    ProductForecast,
    denormalize_quantity,
    generate_future_months,
)


def test_denormalise_midpoint():
    assert denormalize_quantity(0.5, 10, 80) == 45


@pytest.mark.parametrize("value, expected", [(0.0, 10), (0.25, 11), (0.75, 12), (1.0, 12)])
def test_denormalise_rounds_half_up(value, expected):
    # 0.25 -> 10.5, 0.75 -> 11.5
    assert denormalize_quantity(value, 10, 12) == expected


def test_denormalise_constant_scale_returns_min():
    assert denormalize_quantity(0.73, 12, 12) == 12


def test_denormalise_returns_python_int():
    assert isinstance(denormalize_quantity(0.3, 0, 10), int)


def test_future_months_roll_over_year():
    assert generate_future_months("2023-12", 6) == [
        "2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"
    ]


def test_future_months_start_strictly_after_reference():
    assert generate_future_months("2023-05", 2) == ["2023-06", "2023-07"]


def test_future_months_are_restartable():
    assert generate_future_months("2022-11", 3) == generate_future_months("2022-11", 3)


def test_future_months_accept_timestamp():
    assert generate_future_months(pd.Timestamp("2021-10-01"), 3) == ["2021-11", "2021-12", "2022-01"]


def test_zero_count_gives_no_months():
    assert generate_future_months("2023-05", 0) == []


def test_invalid_start_month_raises():
    with pytest.raises(ValueError):
        generate_future_months("someday", 2)


def test_product_forecast_to_dict():
    forecast = ProductForecast(product="A", predictions=[ForecastPoint("2024-01", 45)])
    assert forecast.to_dict() == {"product": "A", "predictions": [{"date": "2024-01", "quantity": 45}]}
