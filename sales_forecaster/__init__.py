#////////////////////////////////////////////////////////////////////////////////#
# File:         __init__.py                                                      #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-02                                                       #
# Description:  Package initialization for monthly sales forecasting.           #
#////////////////////////////////////////////////////////////////////////////////#

"""
Monthly product sales forecasting package.

This package loads monthly sales CSV files, trains a small LSTM on windowed
(month, product) sequences and turns its outputs into per-product forecasts.
"""

__version__ = "0.1.0"
