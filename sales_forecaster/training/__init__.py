#////////////////////////////////////////////////////////////////////////////////#
# File:         __init__.py                                                      #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-08                                                       #
# Description:  Training package initialization for CLI entry points.           #
#////////////////////////////////////////////////////////////////////////////////#

"""
Training scripts for the sales forecaster.

- train_sales_forecaster.py: trains the LSTM on a sales CSV and writes forecasts
"""
