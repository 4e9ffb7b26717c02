#////////////////////////////////////////////////////////////////////////////////#
# File:         __init__.py                                                      #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-05                                                       #
# Description:  Models package initialization for the sales LSTM.               #
#////////////////////////////////////////////////////////////////////////////////#

"""
Models package for monthly sales forecasting.
"""

from .lstm import (
    SalesLSTM,
    create_lstm_model,
    split_train_validation,
    train_lstm_model,
    predict_with_lstm,
    predict_window,
    save_lstm,
    load_lstm
)

__all__ = [
    'SalesLSTM',
    'create_lstm_model',
    'split_train_validation',
    'train_lstm_model',
    'predict_with_lstm',
    'predict_window',
    'save_lstm',
    'load_lstm'
]
