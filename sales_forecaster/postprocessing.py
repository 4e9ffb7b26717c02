#////////////////////////////////////////////////////////////////////////////////#
# File:         postprocessing.py                                                #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-04                                                       #
# Description:  Inverse scaling and future month labels for forecasts.           #
#////////////////////////////////////////////////////////////////////////////////#

"""
Post-processing of model outputs into presentable forecasts.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

import pandas as pd

from sales_forecaster import config


@dataclass(frozen=True)
class ForecastPoint:
    """one forecast month for one product"""
    calendar_month: str  # "YYYY-MM"
    predicted_quantity: int


@dataclass
class ProductForecast:
    """forecast points for a single product, in calendar order"""
    product: str
    predictions: List[ForecastPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product": self.product,
            "predictions": [
                {"date": point.calendar_month, "quantity": point.predicted_quantity}
                for point in self.predictions
            ]
        }


def denormalize_quantity(normalized_value: float, min_quantity: float, max_quantity: float) -> int:
    """
    Map a [0, 1] model output back to units.

    Computes value * (max - min) + min and rounds half up, so 0.5 on [10, 80] gives 45.
    A constant scale (max == min) always returns round(min).
    """
    raw_value = float(normalized_value) * (max_quantity - min_quantity) + min_quantity
    return int(math.floor(raw_value + 0.5))


def generate_future_months(start_month: Union[str, pd.Period, pd.Timestamp], count: int) -> List[str]:
    """
    Generate the ``count`` calendar months strictly after ``start_month``.

    Args:
        start_month: Reference month, "YYYY-MM" or anything pandas can read as a month
        count: Number of labels to produce

    Returns:
        List of "YYYY-MM" labels, e.g. "2023-12", 3 -> ["2024-01", "2024-02", "2024-03"]
    """
    try:
        start = pd.Period(start_month, freq="M")
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid start month {start_month!r}: {e}") from e

    return [(start + step).strftime(config.MONTH_FORMAT) for step in range(1, count + 1)]
