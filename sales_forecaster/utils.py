#////////////////////////////////////////////////////////////////////////////////#
# File:         utils.py                                                         #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-02                                                       #
#////////////////////////////////////////////////////////////////////////////////#


"""
Utility functions for the sales forecasting project.
"""
import json
import logging
import random
import re
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np
import torch

from sales_forecaster import config

logger = logging.getLogger(__name__)


def create_directory(directory: Union[str, Path]) -> Path:
    """create directory if it doesnt exist"""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _json_default(value):
    # numpy scalars and arrays show up in histories and metrics
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def save_json(data: Dict, filepath: Union[str, Path]) -> None:
    """Save dict to JSON."""
    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2, default=_json_default)


def setup_torch_device(prefer_cuda: bool = True) -> torch.device:
    """setup torch device (cpu or cuda)"""
    if prefer_cuda and torch.cuda.is_available():
        device = torch.device("cuda")
        logger.info(f"Using GPU: {torch.cuda.get_device_name(0)}")
    else:
        device = torch.device("cpu")
        logger.info("Using CPU")
    return device


def set_random_seed(seed: Optional[int] = None) -> None:
    """set random seed for reproducibility"""
    if seed is None:
        seed = config.RANDOM_SEED

    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
        torch.backends.cudnn.deterministic = True
        torch.backends.cudnn.benchmark = False


def format_time(seconds: float) -> str:
    """format seconds into readable string"""
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{int(hours)}h {int(minutes)}m {int(seconds)}s"


def sanitize_for_path(name: str) -> str:
    """
    Replace characters that are awkward in file names with underscores.

    Product descriptions are free text, so chart file names go through here.

    Args:
        name: String to sanitize for use in file/directory paths

    Returns:
        Sanitized string safe for use in file paths
    """
    if not isinstance(name, str):
        name = str(name)

    sanitized_name = re.sub(r'[\\/:*?"<>|\s]', '_', name.strip())
    sanitized_name = re.sub(r'_+', '_', sanitized_name)

    if not sanitized_name:
        return "unnamed_product"
    return sanitized_name
