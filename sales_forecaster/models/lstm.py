#////////////////////////////////////////////////////////////////////////////////#
# File:         lstm.py                                                          #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-05                                                       #
#////////////////////////////////////////////////////////////////////////////////#


"""
LSTM regressor mapping (month_offset, product_id) windows to a normalised quantity.
"""


import logging
import os
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from sales_forecaster import config

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, float], None]


class SalesLSTM(nn.Module):
    """
    Single layer LSTM followed by a small dense head with a sigmoid output.

    Input shape (batch_size, window_size, 2), output shape (batch_size, 1) in [0, 1].
    """
    def __init__(
        self,
        input_dim: int = config.N_INPUT_FEATURES,
        hidden_dim: int = config.DEFAULT_HIDDEN_DIM,
        dense_dim: int = config.DEFAULT_DENSE_DIM,
        window_size: int = config.WINDOW_SIZE
    ):
        """
        Initialize the sales LSTM.

        Args:
            input_dim: Number of features per time step
            hidden_dim: Number of hidden units in the LSTM layer
            dense_dim: Number of units in the ReLU layer
            window_size: Expected sequence length (checked in forward)
        """
        super(SalesLSTM, self).__init__()

        # Store architecture parameters for save/load functionality
        self.input_dim = input_dim
        self.hidden_dim = hidden_dim
        self.dense_dim = dense_dim
        self.window_size = window_size

        self.lstm = nn.LSTM(
            input_size=input_dim,
            hidden_size=hidden_dim,
            num_layers=1,
            batch_first=True  # (batch, sequence, features)
        )
        self.dense = nn.Linear(hidden_dim, dense_dim)
        self.relu = nn.ReLU()
        self.output = nn.Linear(dense_dim, 1)
        self.sigmoid = nn.Sigmoid()

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Forward pass through the model.

        Args:
            x: Tensor of shape (batch_size, window_size, input_dim)

        Returns:
            Tensor of shape (batch_size, 1)
        """
        if x.dim() != 3 or x.shape[1] != self.window_size or x.shape[2] != self.input_dim:
            raise ValueError(
                f"Expected input of shape (batch, {self.window_size}, {self.input_dim}), "
                f"got {tuple(x.shape)}"
            )

        batch_size = x.shape[0]
        h0 = torch.zeros(1, batch_size, self.hidden_dim).to(x.device)
        c0 = torch.zeros(1, batch_size, self.hidden_dim).to(x.device)

        lstm_out, _ = self.lstm(x, (h0, c0))
        # last time step only
        last_step = lstm_out[:, -1, :]
        hidden = self.relu(self.dense(last_step))
        return self.sigmoid(self.output(hidden))


def create_lstm_model(
    hidden_dim: int = config.DEFAULT_HIDDEN_DIM,
    dense_dim: int = config.DEFAULT_DENSE_DIM,
    window_size: int = config.WINDOW_SIZE
) -> SalesLSTM:
    """Factory function for the sales LSTM."""
    return SalesLSTM(
        input_dim=config.N_INPUT_FEATURES,
        hidden_dim=hidden_dim,
        dense_dim=dense_dim,
        window_size=window_size
    )


def split_train_validation(
    X: np.ndarray,
    y: np.ndarray,
    validation_split: float = config.DEFAULT_VALIDATION_SPLIT
) -> Tuple[Tuple[np.ndarray, np.ndarray], Optional[Tuple[np.ndarray, np.ndarray]]]:
    """
    Hold out the last ``validation_split`` fraction of samples for validation.

    The split is taken before any shuffling. When the training part would be empty
    every sample is used for training and no validation set is returned.
    """
    if not 0.0 <= validation_split < 1.0:
        raise ValueError(f"validation_split must be in [0, 1), got {validation_split}")

    n_samples = len(X)
    split_idx = int(n_samples * (1.0 - validation_split))
    if split_idx == 0 or split_idx == n_samples:
        if validation_split > 0.0:
            logger.warning(f"Too few samples ({n_samples}) for a validation split; training on all of them")
        return (X, y), None

    return (X[:split_idx], y[:split_idx]), (X[split_idx:], y[split_idx:])


def train_lstm_model(
    model: SalesLSTM,
    X: np.ndarray,
    y: np.ndarray,
    epochs: int = config.DEFAULT_EPOCHS,
    batch_size: int = config.DEFAULT_BATCH_SIZE,
    learning_rate: float = config.DEFAULT_LEARNING_RATE,
    validation_split: float = config.DEFAULT_VALIDATION_SPLIT,
    progress_callback: Optional[ProgressCallback] = None,
    patience: Optional[int] = None,
    min_delta: float = 0.0,
    validation_data: Optional[Tuple[np.ndarray, np.ndarray]] = None,
    device: str = "cuda" if torch.cuda.is_available() else "cpu"
) -> Dict[str, List[float]]:
    """
    Train the LSTM with MSE loss and Adam.

    Args:
        model: Model to train (updated in place)
        X: Inputs of shape (n_samples, window_size, 2)
        y: Targets of shape (n_samples, 1)
        epochs: Number of training epochs
        batch_size: Batch size for training
        learning_rate: Learning rate for optimizer
        validation_split: Fraction of trailing samples held out for validation
        progress_callback: Called as progress_callback(epoch_index, loss) after every epoch
        patience: Epochs without validation improvement before stopping (None disables)
        min_delta: Minimum change in validation loss to count as improvement
        validation_data: Already split (X_val, y_val); when given, X and y are used
            for training as they are and validation_split is ignored
        device: Device to use for training ("cuda" or "cpu")

    Returns:
        Dictionary with training history (loss, val_loss)
    """
    if epochs < 1:
        raise ValueError(f"epochs must be at least 1, got {epochs}")
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")
    if len(X) == 0:
        raise ValueError("No training samples; need more rows than the window size")
    if len(X) != len(y):
        raise ValueError(f"X and y must have the same number of samples, got {len(X)} and {len(y)}")

    if validation_data is not None:
        (X_train, y_train), val_data = (X, y), validation_data
    else:
        (X_train, y_train), val_data = split_train_validation(X, y, validation_split)

    model = model.to(device)
    inputs_train = torch.tensor(X_train, dtype=torch.float32, device=device)
    targets_train = torch.tensor(y_train, dtype=torch.float32, device=device)
    if val_data is not None:
        inputs_val = torch.tensor(val_data[0], dtype=torch.float32, device=device)
        targets_val = torch.tensor(val_data[1], dtype=torch.float32, device=device)

    optimizer = optim.Adam(model.parameters(), lr=learning_rate)
    criterion = nn.MSELoss()

    history = {"loss": [], "val_loss": []}
    best_val_loss = float("inf")
    no_improvement_count = 0

    n_samples = inputs_train.shape[0]
    n_batches = (n_samples + batch_size - 1) // batch_size

    logger.info(
        f"Training on {n_samples} samples"
        + (f", validating on {inputs_val.shape[0]}" if val_data is not None else "")
        + f" for {epochs} epochs (batch size {batch_size}, lr {learning_rate})"
    )

    for epoch in range(epochs):
        model.train()
        total_loss = 0.0

        # reshuffle every epoch
        shuffled_indices = torch.randperm(n_samples, device=device)

        for batch_idx in range(n_batches):
            start_idx = batch_idx * batch_size
            end_idx = min(start_idx + batch_size, n_samples)
            batch_indices = shuffled_indices[start_idx:end_idx]

            optimizer.zero_grad()
            y_pred = model(inputs_train[batch_indices])
            loss = criterion(y_pred, targets_train[batch_indices])

            if torch.isnan(loss) or torch.isinf(loss):
                raise RuntimeError(f"Training loss became {loss.item()} at epoch {epoch + 1}")

            loss.backward()
            torch.nn.utils.clip_grad_norm_(model.parameters(), max_norm=config.GRADIENT_CLIP_NORM)
            optimizer.step()

            total_loss += loss.item() * (end_idx - start_idx)

        avg_train_loss = total_loss / n_samples
        history["loss"].append(avg_train_loss)

        val_message = ""
        stop_early = False
        if val_data is not None:
            model.eval()
            with torch.no_grad():
                val_loss = criterion(model(inputs_val), targets_val).item()
            history["val_loss"].append(val_loss)
            val_message = f", Val Loss: {val_loss:.4f}"

            if val_loss < best_val_loss - min_delta:
                best_val_loss = val_loss
                no_improvement_count = 0
            else:
                no_improvement_count += 1
            stop_early = patience is not None and no_improvement_count >= patience

        logger.debug(f"Epoch {epoch + 1}/{epochs}, Loss: {avg_train_loss:.4f}{val_message}")
        if progress_callback is not None:
            progress_callback(epoch, avg_train_loss)

        if stop_early:
            logger.info(f"Early stopping after {epoch + 1} epochs")
            break

    logger.info(f"Training finished, final loss {history['loss'][-1]:.4f}")
    return history


def predict_with_lstm(
    model: SalesLSTM,
    X: np.ndarray,
    device: str = "cuda" if torch.cuda.is_available() else "cpu",
    batch_size: int = 64
) -> np.ndarray:
    """
    Generate normalised predictions for a batch of windows.

    Returns:
        Array of shape (n_samples, 1)
    """
    model = model.to(device)
    model.eval()

    predictions_list = []
    with torch.no_grad():
        for batch_idx in range(0, len(X), batch_size):
            end_idx = min(batch_idx + batch_size, len(X))
            batch = torch.tensor(X[batch_idx:end_idx], dtype=torch.float32, device=device)
            predictions_list.append(model(batch).cpu().numpy())

    if not predictions_list:
        return np.zeros((0, 1), dtype=np.float32)
    return np.concatenate(predictions_list, axis=0)


def predict_window(
    model: nn.Module,
    window: np.ndarray,
    device: str = "cpu"
) -> float:
    """
    Run the model on a single (window_size, 2) window and return the scalar output.

    Both the input and output tensors are released before returning, including when
    the model raises.
    """
    input_tensor = torch.tensor(np.asarray(window, dtype=np.float32)[np.newaxis, ...], device=device)
    prediction = None
    try:
        with torch.no_grad():
            prediction = model(input_tensor)
        if prediction.numel() != 1:
            raise ValueError(f"Model returned {prediction.numel()} values for one window, expected 1")
        return float(prediction.reshape(-1)[0].item())
    finally:
        # a propagating traceback keeps this frame alive
        del input_tensor, prediction


def save_lstm(
    model: SalesLSTM,
    path: Union[str, os.PathLike],
    metadata: Optional[Dict[str, Any]] = None
) -> None:
    """
    Save model weights, architecture and optional metadata to a single checkpoint.

    Args:
        model: Trained model
        path: File path of the checkpoint (.pth)
        metadata: Extra JSON-like information, e.g. product labels and quantity scale
    """
    directory = os.path.dirname(os.fspath(path))
    if directory:
        os.makedirs(directory, exist_ok=True)

    checkpoint = {
        "model_state_dict": model.state_dict(),
        "model_config": {
            "input_dim": model.input_dim,
            "hidden_dim": model.hidden_dim,
            "dense_dim": model.dense_dim,
            "window_size": model.window_size
        },
        "metadata": metadata or {}
    }
    torch.save(checkpoint, path)
    logger.info(f"Model checkpoint saved to: {path}")


def load_lstm(
    path: Union[str, os.PathLike],
    device: str = "cuda" if torch.cuda.is_available() else "cpu"
) -> Tuple[SalesLSTM, Dict[str, Any]]:
    """
    Load a checkpoint written by save_lstm.

    Returns:
        Tuple of (model in eval mode, metadata)
    """
    checkpoint = torch.load(path, map_location=device)
    model_config = checkpoint["model_config"]

    model = SalesLSTM(
        input_dim=model_config["input_dim"],
        hidden_dim=model_config["hidden_dim"],
        dense_dim=model_config["dense_dim"],
        window_size=model_config["window_size"]
    )
    model.load_state_dict(checkpoint["model_state_dict"])
    model = model.to(device)
    model.eval()

    return model, checkpoint.get("metadata", {})
