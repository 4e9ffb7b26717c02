#////////////////////////////////////////////////////////////////////////////////#
# File:         visualization.py                                                 #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-07                                                       #
# Description:  Actual vs predicted sales charts per product.                    #
#////////////////////////////////////////////////////////////////////////////////#

"""
Charts of actual sales next to forecast points, one PNG per product.
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from sales_forecaster import config
from sales_forecaster.postprocessing import ProductForecast
from sales_forecaster.utils import create_directory, sanitize_for_path

logger = logging.getLogger(__name__)


def build_chart_data(sales_data: pd.DataFrame, product_forecast: ProductForecast) -> pd.DataFrame:
    """
    Rows for one product's chart: actual sales first, then forecast points.

    Returns:
        DataFrame with columns ``date``, ``actual`` and ``predicted`` (nullable ints);
        each row fills exactly one of the two value columns
    """
    product_rows = sales_data[sales_data[config.PRODUCT_COLUMN] == product_forecast.product]
    actual = pd.DataFrame({
        "date": product_rows[config.DATE_COLUMN].astype(str).to_numpy(),
        # chart shows whole units
        "actual": np.trunc(product_rows[config.QUANTITY_COLUMN].to_numpy(dtype=float)).astype(np.int64),
        "predicted": pd.NA
    })
    predicted = pd.DataFrame({
        "date": [point.calendar_month for point in product_forecast.predictions],
        "actual": pd.NA,
        "predicted": [point.predicted_quantity for point in product_forecast.predictions]
    })

    chart_data = pd.concat([actual, predicted], ignore_index=True)
    chart_data["actual"] = chart_data["actual"].astype("Int64")
    chart_data["predicted"] = chart_data["predicted"].astype("Int64")
    return chart_data


def latest_values(chart_data: pd.DataFrame) -> Dict[str, Optional[int]]:
    """latest actual and latest predicted quantity by month, None when absent"""
    result = {}
    for column, key in (("actual", "latest_actual"), ("predicted", "latest_prediction")):
        rows = chart_data[chart_data[column].notna()].sort_values("date", ascending=False, kind="stable")
        result[key] = int(rows[column].iloc[0]) if len(rows) else None
    return result


def plot_product_forecast(
    sales_data: pd.DataFrame,
    product_forecast: ProductForecast,
    output_path: Union[str, Path]
) -> Path:
    """
    Save a line chart of actual vs predicted sales for one product.

    Args:
        sales_data: Validated sales DataFrame used for training
        product_forecast: Forecast for the product to draw
        output_path: PNG file to write

    Returns:
        Path of the written chart
    """
    output_path = Path(output_path)
    create_directory(output_path.parent)

    chart_data = build_chart_data(sales_data, product_forecast)
    summary = latest_values(chart_data)
    positions = np.arange(len(chart_data))
    actual_mask = chart_data["actual"].notna().to_numpy()
    predicted_mask = chart_data["predicted"].notna().to_numpy()

    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(
        positions[actual_mask], chart_data.loc[actual_mask, "actual"].astype(float),
        color="#8884d8", linewidth=2, marker="o", markersize=4, label="Actual Sales"
    )
    ax.plot(
        positions[predicted_mask], chart_data.loc[predicted_mask, "predicted"].astype(float),
        color="#82ca9d", linewidth=2, linestyle="--", marker="o", markersize=4, label="Predicted Sales"
    )
    ax.set_xticks(positions)
    ax.set_xticklabels(chart_data["date"], rotation=45, ha="right")
    ax.grid(True, linestyle="--", alpha=0.5)
    ax.set_ylabel("Units")
    ax.set_title(
        f"{product_forecast.product} - Sales Forecast\n"
        f"latest actual: {_format_units(summary['latest_actual'])}, "
        f"latest prediction: {_format_units(summary['latest_prediction'])}"
    )
    ax.legend()
    fig.tight_layout()
    fig.savefig(output_path, dpi=100)
    plt.close(fig)

    logger.debug(f"Chart for {product_forecast.product} saved to {output_path}")
    return output_path


def plot_all_forecasts(
    sales_data: pd.DataFrame,
    forecasts: Sequence[ProductForecast],
    output_dir: Union[str, Path]
) -> List[Path]:
    """write one chart per product into output_dir"""
    output_dir = create_directory(output_dir)
    paths = []
    for idx, product_forecast in enumerate(forecasts):
        # index prefix keeps names unique after sanitising
        file_name = f"{idx:03d}_{sanitize_for_path(product_forecast.product)}.png"
        paths.append(plot_product_forecast(sales_data, product_forecast, output_dir / file_name))

    logger.info(f"Saved {len(paths)} charts to {output_dir}")
    return paths


def _format_units(value: Optional[int]) -> str:
    return "N/A" if value is None else f"{value} units"
