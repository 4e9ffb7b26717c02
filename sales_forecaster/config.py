#////////////////////////////////////////////////////////////////////////////////#
# File:         config.py                                                        #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-02                                                       #
# Description:  Configuration settings for monthly sales forecasting.            #
#////////////////////////////////////////////////////////////////////////////////#


"""
Configuration settings for the monthly sales forecasting project.
"""
import os
from pathlib import Path

# Project directory structure
PROJECT_ROOT = Path(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DATA_DIR = PROJECT_ROOT / "data"
TRAINED_MODELS_DIR = PROJECT_ROOT / "trained_models"
PREDICTIONS_DIR = PROJECT_ROOT / "predictions"

# Input CSV layout
DATE_COLUMN = "sales_date"
PRODUCT_COLUMN = "product_description"
QUANTITY_COLUMN = "quantity_sold"
REQUIRED_COLUMNS = [DATE_COLUMN, PRODUCT_COLUMN, QUANTITY_COLUMN]
MONTH_PATTERN = r"^\d{4}-\d{2}$"  # "YYYY-MM"
MONTH_FORMAT = "%Y-%m"

# Data settings
WINDOW_SIZE = 6  # months of (month_offset, product_id) context per sample
N_INPUT_FEATURES = 2  # month_offset, product_id
FORECAST_MONTHS = 6  # future month labels generated after the last observation
FORECAST_HORIZON = 1  # model calls per product; 1 keeps a single forecast point
CONSTANT_SERIES_NORMALIZED_VALUE = 0.5  # used when every quantity is identical

# Training settings
RANDOM_SEED = 42
DEFAULT_EPOCHS = 100
DEFAULT_BATCH_SIZE = 32
DEFAULT_LEARNING_RATE = 0.001
DEFAULT_VALIDATION_SPLIT = 0.2
GRADIENT_CLIP_NORM = 1.0

# LSTM model settings
DEFAULT_HIDDEN_DIM = 32
DEFAULT_DENSE_DIM = 16

# Output file configuration
OUTPUT_CONFIG = {
    "forecasts_file_name": "forecasts.json",
    "training_info_file_name": "training_info.json",
    "model_file_name": "sales_lstm.pth",
    "chart_dir_name": "charts"
}
