# tests/conftest.py
import matplotlib

# charts are written to files only
matplotlib.use("Agg")

import pandas as pd
import pytest

from sales_forecaster import config


def make_sales_frame(months, products, quantities) -> pd.DataFrame:
    return pd.DataFrame({
        config.DATE_COLUMN: list(months),
        config.PRODUCT_COLUMN: list(products),
        config.QUANTITY_COLUMN: [float(q) for q in quantities],
    })


@pytest.fixture
def single_product_sales() -> pd.DataFrame:
    """product A for 2023-01..2023-08, quantities 10..80 step 10"""
    months = [f"2023-{m:02d}" for m in range(1, 9)]
    return make_sales_frame(months, ["A"] * 8, range(10, 90, 10))


@pytest.fixture
def two_product_sales() -> pd.DataFrame:
    """two products interleaved over 2022-10..2023-03"""
    months = []
    products = []
    quantities = []
    for i, month in enumerate(["2022-10", "2022-11", "2022-12", "2023-01", "2023-02", "2023-03"]):
        months += [month, month]
        products += ["Widget", "Gadget"]
        quantities += [20 + i, 50 - i]
    return make_sales_frame(months, products, quantities)


@pytest.fixture
def write_csv(tmp_path):
    """write text to a CSV under tmp_path and return its path"""
    def _write(text: str, name: str = "sales.csv"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return _write
