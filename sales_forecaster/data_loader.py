#////////////////////////////////////////////////////////////////////////////////#
# File:         data_loader.py                                                   #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-03                                                       #
# Description:  CSV loading and row validation for monthly sales data.           #
#////////////////////////////////////////////////////////////////////////////////#
"""
Data loading functions for monthly product sales CSV files.

The loader reads every column as text, drops rows that fail validation and
returns a typed DataFrame with the columns ``sales_date``, ``product_description``
and ``quantity_sold``. Nothing is returned unless at least one valid row survives.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Union

import numpy as np
import pandas as pd

from sales_forecaster import config

logger = logging.getLogger(__name__)


class InputFormatError(ValueError):
    """Raised when a sales file cannot be turned into at least one valid row."""


@dataclass(frozen=True)
class SalesRecord:
    """single month of sales for one product"""
    month: str  # "YYYY-MM"
    product: str
    quantity_sold: float


def load_sales_csv(csv_path: Union[str, Path]) -> pd.DataFrame:
    """
    Load and validate a monthly sales CSV.

    Args:
        csv_path: Path to a CSV file with a header row

    Returns:
        DataFrame with the required columns, invalid rows removed, original row order kept

    Raises:
        InputFormatError: If the file is not a CSV, cannot be parsed, lacks a required
            column or has no valid rows
    """
    csv_path = Path(csv_path)
    if csv_path.suffix.lower() != ".csv":
        raise InputFormatError("Please upload a CSV file")

    logger.info(f"Loading sales data from {csv_path}")
    try:
        raw_data = pd.read_csv(
            csv_path,
            dtype=str,
            skip_blank_lines=True,
            keep_default_na=False
        )
    except FileNotFoundError as e:
        raise InputFormatError(f"Error reading file: {e}") from e
    except pd.errors.EmptyDataError as e:
        raise InputFormatError("No valid data found in the CSV file") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise InputFormatError(f"Error parsing CSV file: {e}") from e

    return validate_sales_data(raw_data)


def validate_sales_data(raw_data: pd.DataFrame) -> pd.DataFrame:
    """
    Validate raw sales rows and coerce them to their working types.

    Rows are dropped when the month is not "YYYY-MM" with a month between 01 and 12,
    the product description is empty, or the quantity is not numeric.

    Args:
        raw_data: DataFrame as read from the CSV (any dtypes)

    Returns:
        Clean DataFrame with ``sales_date`` (str), ``product_description`` (str) and
        ``quantity_sold`` (float) columns
    """
    missing_columns = [col for col in config.REQUIRED_COLUMNS if col not in raw_data.columns]
    if missing_columns:
        raise InputFormatError(f"Missing required columns: {', '.join(missing_columns)}")

    if raw_data.empty:
        raise InputFormatError("No valid data found in the CSV file")

    dates = raw_data[config.DATE_COLUMN].map(_as_text).str.strip()
    products = raw_data[config.PRODUCT_COLUMN].map(_as_text)
    quantities = pd.to_numeric(
        raw_data[config.QUANTITY_COLUMN].map(lambda v: v.strip() if isinstance(v, str) else v),
        errors="coerce"
    ).astype(float)

    # pattern check alone lets "2023-13" through
    month_numbers = pd.to_numeric(dates.str.slice(5, 7), errors="coerce")
    valid_dates = dates.str.match(config.MONTH_PATTERN) & month_numbers.between(1, 12)
    valid_products = products.str.strip().str.len() > 0
    valid_quantities = pd.Series(np.isfinite(quantities.to_numpy()), index=raw_data.index)

    valid_mask = valid_dates & valid_products & valid_quantities
    n_dropped = int((~valid_mask).sum())
    if n_dropped:
        logger.debug(f"Dropped {n_dropped} invalid rows out of {len(raw_data)}")

    if not valid_mask.any():
        raise InputFormatError("No valid data found in the CSV file")

    clean_data = pd.DataFrame({
        config.DATE_COLUMN: dates[valid_mask].astype(str),
        config.PRODUCT_COLUMN: products[valid_mask].astype(str),
        config.QUANTITY_COLUMN: quantities[valid_mask].astype(float)
    }).reset_index(drop=True)

    logger.info(
        f"Loaded {len(clean_data)} valid rows for "
        f"{clean_data[config.PRODUCT_COLUMN].nunique()} products"
    )
    return clean_data


def _as_text(value) -> str:
    """non-string cells (NaN, numbers) become empty text so they fail validation"""
    return value if isinstance(value, str) else ""


def records_from_frame(sales_data: pd.DataFrame) -> List[SalesRecord]:
    """convert a validated sales frame into SalesRecord objects"""
    return [
        SalesRecord(month=month, product=product, quantity_sold=float(quantity))
        for month, product, quantity in zip(
            sales_data[config.DATE_COLUMN],
            sales_data[config.PRODUCT_COLUMN],
            sales_data[config.QUANTITY_COLUMN]
        )
    ]


def frame_from_records(records: Iterable[SalesRecord]) -> pd.DataFrame:
    """convert SalesRecord objects into a sales frame"""
    records = list(records)
    return pd.DataFrame({
        config.DATE_COLUMN: [r.month for r in records],
        config.PRODUCT_COLUMN: [r.product for r in records],
        config.QUANTITY_COLUMN: [float(r.quantity_sold) for r in records]
    })
