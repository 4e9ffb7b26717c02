#////////////////////////////////////////////////////////////////////////////////#
# File:         preprocessing.py                                                 #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-03                                                       #
# Description:  Month, product and quantity normalisation for LSTM inputs.       #
#////////////////////////////////////////////////////////////////////////////////#

"""
Preprocessing for monthly sales data.

Turns validated sales rows into the three parallel numeric streams the LSTM is
trained on:

1. month offsets counted from the earliest observed month
2. dense product ids assigned in first-seen order
3. quantities min-max scaled to [0, 1]

The product encoding and the quantity scale are returned as immutable objects so
that inference and post-processing reuse exactly the mapping seen in training.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from sales_forecaster import config
from sales_forecaster.data_loader import SalesRecord, frame_from_records
from sales_forecaster.postprocessing import denormalize_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductEncoding:
    """
    Immutable mapping from product label to integer id.

    Ids are dense from 0 and follow the order in which labels were first seen.
    """
    labels: Tuple[str, ...]

    def __post_init__(self):
        if len(set(self.labels)) != len(self.labels):
            raise ValueError("Product labels must be unique")
        # lookup table is derived state, not a dataclass field
        object.__setattr__(self, "_ids", {label: idx for idx, label in enumerate(self.labels)})

    @classmethod
    def from_labels(cls, labels: Iterable[str]) -> "ProductEncoding":
        """build an encoding in first-occurrence order"""
        return cls(labels=tuple(pd.unique(pd.Series(list(labels), dtype=object))))

    def id_for(self, label: str) -> int:
        """return the id of a known label; unknown labels raise KeyError"""
        try:
            return self._ids[label]
        except KeyError:
            raise KeyError(f"Unknown product label: {label!r}") from None

    def label_for(self, product_id: int) -> str:
        """return the label of a known id; ids outside 0..n-1 raise KeyError"""
        if not 0 <= product_id < len(self.labels):
            raise KeyError(f"Unknown product id: {product_id}")
        return self.labels[product_id]

    def encode(self, labels: Iterable[str]) -> np.ndarray:
        return np.array([self.id_for(label) for label in labels], dtype=np.int64)

    def as_dict(self) -> Dict[str, int]:
        return dict(self._ids)

    def __len__(self) -> int:
        return len(self.labels)

    def __contains__(self, label) -> bool:
        return label in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self.labels)


@dataclass(frozen=True)
class QuantityScale:
    """min/max of the raw quantities, shared by normalisation and its inverse"""
    min: float
    max: float

    def __post_init__(self):
        if self.max < self.min:
            raise ValueError(f"Invalid quantity scale: max ({self.max}) < min ({self.min})")

    @classmethod
    def from_values(cls, quantities: Sequence[float]) -> "QuantityScale":
        values = _as_quantity_array(quantities)
        return cls(min=float(values.min()), max=float(values.max()))

    @property
    def is_constant(self) -> bool:
        return self.max == self.min

    def normalize(self, quantities: Sequence[float]) -> np.ndarray:
        """
        Scale raw quantities to [0, 1] with (q - min) / (max - min).

        A constant series has no range to divide by, so every value maps to
        ``config.CONSTANT_SERIES_NORMALIZED_VALUE``.
        """
        values = _as_quantity_array(quantities)
        if self.is_constant:
            return np.full(values.shape, config.CONSTANT_SERIES_NORMALIZED_VALUE, dtype=np.float64)
        return (values - self.min) / (self.max - self.min)

    def denormalize(self, normalized_value: float) -> int:
        return denormalize_quantity(normalized_value, self.min, self.max)


@dataclass(frozen=True)
class EncodedRecord:
    """numeric form of one SalesRecord"""
    month_offset: int
    product_id: int
    normalized_quantity: float


@dataclass(frozen=True)
class PreprocessedData:
    """
    Output of preprocess_sales_data.

    The three arrays are parallel to the input rows and keep their order.
    """
    month_offsets: np.ndarray
    product_ids: np.ndarray
    quantities: np.ndarray
    encoding: ProductEncoding
    scale: QuantityScale
    start_month: str
    last_month: str

    @property
    def last_offset(self) -> int:
        return int(self.month_offsets.max())

    def encoded_records(self) -> List[EncodedRecord]:
        return [
            EncodedRecord(int(offset), int(product_id), float(quantity))
            for offset, product_id, quantity in zip(self.month_offsets, self.product_ids, self.quantities)
        ]

    def __len__(self) -> int:
        return len(self.month_offsets)


def _as_quantity_array(quantities: Sequence[float]) -> np.ndarray:
    try:
        values = np.asarray(quantities, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Quantities must be numeric: {e}") from e
    if values.size == 0:
        raise ValueError("No quantities to normalize")
    if not np.isfinite(values).all():
        raise ValueError("Quantities must be finite numbers")
    return values


def _parse_months(months: Sequence[str]) -> pd.DatetimeIndex:
    try:
        return pd.DatetimeIndex(pd.to_datetime(list(months), format=config.MONTH_FORMAT))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Months must use the YYYY-MM format: {e}") from e


def normalize_dates(months: Sequence[str]) -> Tuple[np.ndarray, str]:
    """
    Convert "YYYY-MM" strings to month offsets from the earliest month.

    Args:
        months: Sequence of "YYYY-MM" strings, any order

    Returns:
        Tuple of (offsets as int64 array parallel to the input, earliest month as "YYYY-MM")
    """
    if len(months) == 0:
        raise ValueError("No months to normalize")

    parsed = _parse_months(months)
    start = parsed.min()
    offsets = (parsed.year - start.year) * 12 + (parsed.month - start.month)
    return np.asarray(offsets, dtype=np.int64), start.strftime(config.MONTH_FORMAT)


def encode_products(labels: Sequence[str]) -> Tuple[ProductEncoding, np.ndarray]:
    """
    Assign dense integer ids to product labels in first-seen order.

    Returns:
        Tuple of (encoding, id per input row)
    """
    encoding = ProductEncoding.from_labels(labels)
    return encoding, encoding.encode(labels)


def normalize_quantities(quantities: Sequence[float]) -> Tuple[np.ndarray, QuantityScale]:
    """min-max scale quantities over the full sequence"""
    scale = QuantityScale.from_values(quantities)
    return scale.normalize(quantities), scale


def preprocess_sales_data(sales_data: Union[pd.DataFrame, Iterable[SalesRecord]]) -> PreprocessedData:
    """
    Run the date, product and quantity normalisers over a sales table.

    Args:
        sales_data: Validated sales DataFrame (see data_loader) or SalesRecord objects

    Returns:
        PreprocessedData with parallel arrays, the product encoding and the quantity scale
    """
    if not isinstance(sales_data, pd.DataFrame):
        sales_data = frame_from_records(sales_data)
    if sales_data.empty:
        raise ValueError("Cannot preprocess an empty sales table")

    months = sales_data[config.DATE_COLUMN].tolist()
    month_offsets, start_month = normalize_dates(months)
    encoding, product_ids = encode_products(sales_data[config.PRODUCT_COLUMN].tolist())
    quantities, scale = normalize_quantities(sales_data[config.QUANTITY_COLUMN].to_numpy())

    last_month = _parse_months(months).max().strftime(config.MONTH_FORMAT)

    if scale.is_constant:
        logger.warning(
            f"All quantities equal {scale.min}; normalised values set to "
            f"{config.CONSTANT_SERIES_NORMALIZED_VALUE}"
        )
    logger.info(
        f"Preprocessed {len(month_offsets)} rows: {len(encoding)} products, "
        f"months {start_month}..{last_month}, quantity range [{scale.min}, {scale.max}]"
    )

    return PreprocessedData(
        month_offsets=month_offsets,
        product_ids=product_ids,
        quantities=quantities,
        encoding=encoding,
        scale=scale,
        start_month=start_month,
        last_month=last_month
    )
