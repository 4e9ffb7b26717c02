#////////////////////////////////////////////////////////////////////////////////#
# File:         feature_engineering.py                                           #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-04                                                       #
# Description:  Sliding window dataset construction for LSTM training.           #
#////////////////////////////////////////////////////////////////////////////////#

"""
Sliding window sequences for the sales LSTM.

Each sample pairs ``window_size`` consecutive (month_offset, product_id) rows with
the normalised quantity of the row that follows them. Quantity history is not part
of the input features.
"""
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from sales_forecaster import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowSample:
    """window_size (month_offset, product_id) pairs and the next normalised quantity"""
    history: Tuple[Tuple[int, int], ...]
    target: float


def _check_inputs(
    month_offsets: Sequence[int],
    product_ids: Sequence[int],
    quantities: Sequence[float],
    window_size: int
) -> None:
    if window_size < 1:
        raise ValueError(f"window_size must be at least 1, got {window_size}")
    if not len(month_offsets) == len(product_ids) == len(quantities):
        raise ValueError(
            f"Feature sequences must have equal length, got "
            f"{len(month_offsets)} offsets, {len(product_ids)} product ids, {len(quantities)} quantities"
        )


def build_window_samples(
    month_offsets: Sequence[int],
    product_ids: Sequence[int],
    quantities: Sequence[float],
    window_size: int = config.WINDOW_SIZE
) -> List[WindowSample]:
    """
    Slide a fixed window over the encoded rows.

    Args:
        month_offsets: Month offset per row
        product_ids: Encoded product id per row
        quantities: Normalised quantity per row
        window_size: Number of rows of context per sample

    Returns:
        N - window_size samples in row order; empty when N <= window_size
    """
    _check_inputs(month_offsets, product_ids, quantities, window_size)

    samples = []
    for i in range(len(month_offsets) - window_size):
        history = tuple(
            (int(month_offsets[i + j]), int(product_ids[i + j]))
            for j in range(window_size)
        )
        samples.append(WindowSample(history=history, target=float(quantities[i + window_size])))

    return samples


def samples_to_arrays(samples: Sequence[WindowSample], window_size: int = config.WINDOW_SIZE) -> Tuple[np.ndarray, np.ndarray]:
    """
    Stack window samples into model-ready arrays.

    Returns:
        X of shape (n_samples, window_size, 2) and y of shape (n_samples, 1), both float32
    """
    if not samples:
        return (
            np.zeros((0, window_size, config.N_INPUT_FEATURES), dtype=np.float32),
            np.zeros((0, 1), dtype=np.float32)
        )

    X = np.array([sample.history for sample in samples], dtype=np.float32)
    y = np.array([[sample.target] for sample in samples], dtype=np.float32)
    return X, y


def create_dataset(
    month_offsets: Sequence[int],
    product_ids: Sequence[int],
    quantities: Sequence[float],
    window_size: int = config.WINDOW_SIZE
) -> Tuple[np.ndarray, np.ndarray]:
    """build window samples and return them as (X, y) arrays"""
    samples = build_window_samples(month_offsets, product_ids, quantities, window_size)
    X, y = samples_to_arrays(samples, window_size)
    logger.debug(f"Created {len(samples)} windows of size {window_size} from {len(month_offsets)} rows")
    return X, y


def create_future_window(
    last_offset: int,
    product_id: int,
    window_size: int = config.WINDOW_SIZE,
    step: int = 0
) -> np.ndarray:
    """
    Input window for inference after the last observed month.

    Covers offsets last_offset + step + 1 .. last_offset + step + window_size, each
    paired with ``product_id``.

    Returns:
        Array of shape (window_size, 2), float32
    """
    offsets = np.arange(1, window_size + 1) + last_offset + step
    window = np.column_stack([offsets, np.full(window_size, product_id)])
    return window.astype(np.float32)
