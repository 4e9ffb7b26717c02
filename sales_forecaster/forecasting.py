#////////////////////////////////////////////////////////////////////////////////#
# File:         forecasting.py                                                   #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-06                                                       #
# Description:  Train-and-forecast pipeline producing per-product                #
#               forecasts from a sales table.                                    #
#////////////////////////////////////////////////////////////////////////////////#
"""
Train-and-forecast pipeline for monthly product sales.

``train_and_forecast`` is the single entry point used by the CLI: it preprocesses
the sales table, builds the window dataset, trains the LSTM and assembles one
forecast per product. Any failure along the way surfaces as a ``TrainingError``
carrying one readable message; nothing is kept from a failed run.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd
import torch
import torch.nn as nn
from sklearn.metrics import mean_absolute_error, mean_squared_error

from sales_forecaster import config
from sales_forecaster.data_loader import SalesRecord
from sales_forecaster.feature_engineering import create_dataset, create_future_window
from sales_forecaster.models.lstm import (
    ProgressCallback,
    create_lstm_model,
    predict_with_lstm,
    predict_window,
    split_train_validation,
    train_lstm_model
)
from sales_forecaster.postprocessing import ForecastPoint, ProductForecast, generate_future_months
from sales_forecaster.preprocessing import PreprocessedData, QuantityScale, preprocess_sales_data
from sales_forecaster.utils import set_random_seed

logger = logging.getLogger(__name__)


class TrainingError(RuntimeError):
    """Raised when training or forecasting fails; the message is meant for the user."""


@dataclass
class ForecastResult:
    """everything produced by one train_and_forecast run"""
    forecasts: List[ProductForecast]
    preprocessed: PreprocessedData
    model: nn.Module
    history: Dict[str, List[float]]
    metrics: Dict[str, float] = field(default_factory=dict)


def forecast_products(
    model: nn.Module,
    preprocessed: PreprocessedData,
    window_size: int = config.WINDOW_SIZE,
    horizon: int = config.FORECAST_HORIZON,
    forecast_months: int = config.FORECAST_MONTHS,
    device: str = "cpu"
) -> List[ProductForecast]:
    """
    Predict future quantities for every known product.

    For step h the model sees the window_size month offsets that start h + 1 months
    after the last observed offset, paired with the product id. Its output is
    denormalised and labelled with the h-th calendar month after the last observed
    month. With the default horizon of 1 each product gets exactly one point.

    Args:
        model: Trained model honouring the (1, window_size, 2) -> (1, 1) contract
        preprocessed: Output of preprocess_sales_data for the training table
        window_size: Months of context per model call
        horizon: Model calls per product
        forecast_months: Number of future month labels to generate
        device: Device the model lives on

    Returns:
        One ProductForecast per product, in encoding order
    """
    if horizon < 1:
        raise ValueError(f"horizon must be at least 1, got {horizon}")

    future_months = generate_future_months(preprocessed.last_month, max(forecast_months, horizon))
    last_offset = preprocessed.last_offset
    logger.info(f"Generating predictions for {len(preprocessed.encoding)} products: {list(preprocessed.encoding)}")

    model.eval()
    forecasts = []
    for product_id in range(len(preprocessed.encoding)):
        product = preprocessed.encoding.label_for(product_id)
        points = []
        for step in range(horizon):
            window = create_future_window(last_offset, product_id, window_size, step)
            normalized_value = predict_window(model, window, device=device)
            quantity = preprocessed.scale.denormalize(normalized_value)
            points.append(ForecastPoint(calendar_month=future_months[step], predicted_quantity=quantity))
            logger.debug(f"{product} {future_months[step]}: normalised {normalized_value:.4f} -> {quantity}")

        forecasts.append(ProductForecast(product=product, predictions=points))

    return forecasts


def evaluate_fit(
    model: nn.Module,
    X: np.ndarray,
    y: np.ndarray,
    scale: QuantityScale,
    device: str = "cpu"
) -> Dict[str, float]:
    """
    MAE and RMSE of the model in sold units.

    Returns:
        Dictionary with ``mae``, ``rmse`` and ``n_samples``; empty if X is empty
    """
    if len(X) == 0:
        return {}

    predictions = predict_with_lstm(model, X, device=device).reshape(-1)
    predicted_units = np.array([scale.denormalize(value) for value in predictions], dtype=float)
    actual_units = np.array([scale.denormalize(value) for value in np.asarray(y).reshape(-1)], dtype=float)

    return {
        "mae": float(mean_absolute_error(actual_units, predicted_units)),
        "rmse": float(np.sqrt(mean_squared_error(actual_units, predicted_units))),
        "n_samples": int(len(X))
    }


def train_and_forecast(
    sales_data: Union[pd.DataFrame, Iterable[SalesRecord]],
    window_size: int = config.WINDOW_SIZE,
    forecast_months: int = config.FORECAST_MONTHS,
    horizon: int = config.FORECAST_HORIZON,
    epochs: int = config.DEFAULT_EPOCHS,
    batch_size: int = config.DEFAULT_BATCH_SIZE,
    learning_rate: float = config.DEFAULT_LEARNING_RATE,
    validation_split: float = config.DEFAULT_VALIDATION_SPLIT,
    hidden_dim: int = config.DEFAULT_HIDDEN_DIM,
    dense_dim: int = config.DEFAULT_DENSE_DIM,
    progress_callback: Optional[ProgressCallback] = None,
    model: Optional[nn.Module] = None,
    device: str = "cuda" if torch.cuda.is_available() else "cpu",
    seed: Optional[int] = config.RANDOM_SEED
) -> ForecastResult:
    """
    Preprocess sales data, train the LSTM and forecast every product.

    Args:
        sales_data: Validated sales DataFrame or SalesRecord objects
        window_size: Months of context per training sample
        forecast_months: Number of future month labels to generate
        horizon: Forecast points per product
        epochs: Training epochs
        batch_size: Training batch size
        learning_rate: Adam learning rate
        validation_split: Fraction of trailing windows held out for validation
        hidden_dim: LSTM hidden units (ignored when ``model`` is given)
        dense_dim: Dense layer units (ignored when ``model`` is given)
        progress_callback: Called as progress_callback(epoch_index, loss) after each epoch
        model: Optional untrained model to use instead of a fresh SalesLSTM
        device: Device for training and inference
        seed: Random seed, None leaves the global RNG state alone

    Returns:
        ForecastResult with forecasts, preprocessing output, model, history and metrics

    Raises:
        TrainingError: If any step fails
    """
    try:
        preprocessed = preprocess_sales_data(sales_data)
        X, y = create_dataset(
            preprocessed.month_offsets,
            preprocessed.product_ids,
            preprocessed.quantities,
            window_size
        )
        if len(X) == 0:
            raise ValueError(
                f"Need more than {window_size} rows to build training windows, got {len(preprocessed)}"
            )

        if seed is not None:
            set_random_seed(seed)
        if model is None:
            model = create_lstm_model(hidden_dim=hidden_dim, dense_dim=dense_dim, window_size=window_size)

        (X_train, y_train), val_data = split_train_validation(X, y, validation_split)
        history = train_lstm_model(
            model, X_train, y_train,
            epochs=epochs,
            batch_size=batch_size,
            learning_rate=learning_rate,
            validation_split=0.0,
            progress_callback=progress_callback,
            validation_data=val_data,
            device=device
        )

        X_eval, y_eval = val_data if val_data is not None else (X, y)
        metrics = evaluate_fit(model, X_eval, y_eval, preprocessed.scale, device=device)
        if metrics:
            logger.info(f"Fit on {metrics['n_samples']} windows: MAE {metrics['mae']:.2f}, RMSE {metrics['rmse']:.2f}")

        forecasts = forecast_products(
            model, preprocessed,
            window_size=window_size,
            horizon=horizon,
            forecast_months=forecast_months,
            device=device
        )
    except Exception as e:
        logger.error(f"Error training model: {e}")
        raise TrainingError(f"Error training model: {e}") from e

    return ForecastResult(
        forecasts=forecasts,
        preprocessed=preprocessed,
        model=model,
        history=history,
        metrics=metrics
    )
