#////////////////////////////////////////////////////////////////////////////////#
# File:         train_sales_forecaster.py                                        #
# Author:       Douglas Nyberg                                                   #
# Email:        douglas1.nyberg@gmail.com                                        #
# Date:         2025-06-08                                                       #
# Description:  Command line script that trains the sales LSTM on a CSV          #
#               and writes forecasts and charts.                                 #
#////////////////////////////////////////////////////////////////////////////////#
"""
Training script for the monthly sales LSTM.

Loads a sales CSV, trains the model, and writes per-product forecasts, a training
summary, one chart per product and optionally the model checkpoint into the
output directory.
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from tqdm import tqdm

from sales_forecaster import config
from sales_forecaster.data_loader import InputFormatError, load_sales_csv
from sales_forecaster.forecasting import TrainingError, train_and_forecast
from sales_forecaster.models.lstm import save_lstm
from sales_forecaster.utils import create_directory, format_time, save_json, setup_torch_device
from sales_forecaster.visualization import plot_all_forecasts

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list, defaults to sys.argv[1:]

    Returns:
        argparse.Namespace object containing all parsed command line arguments
    """
    parser = argparse.ArgumentParser(
        description="Train an LSTM on monthly product sales and forecast the next months",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Data arguments
    parser.add_argument(
        "--csv-path",
        type=str,
        required=True,
        help="Path to the sales CSV (sales_date, product_description, quantity_sold)"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=str(config.PREDICTIONS_DIR),
        help="Output directory for forecasts, charts and model files"
    )

    # Windowing and forecast options
    parser.add_argument("--window-size", type=int, default=config.WINDOW_SIZE, help="Months of context per sample")
    parser.add_argument("--forecast-months", type=int, default=config.FORECAST_MONTHS, help="Future month labels to generate")
    parser.add_argument("--horizon", type=int, default=config.FORECAST_HORIZON, help="Forecast points per product")

    # Model hyperparameters
    parser.add_argument("--hidden-dim", type=int, default=config.DEFAULT_HIDDEN_DIM, help="LSTM hidden units")
    parser.add_argument("--dense-dim", type=int, default=config.DEFAULT_DENSE_DIM, help="Dense layer units")
    parser.add_argument("--epochs", type=int, default=config.DEFAULT_EPOCHS, help="Training epochs")
    parser.add_argument("--batch-size", type=int, default=config.DEFAULT_BATCH_SIZE, help="Training batch size")
    parser.add_argument("--learning-rate", type=float, default=config.DEFAULT_LEARNING_RATE, help="Learning rate")
    parser.add_argument("--validation-split", type=float, default=config.DEFAULT_VALIDATION_SPLIT, help="Fraction of trailing windows used for validation")

    # Other options
    parser.add_argument("--random-seed", type=int, default=config.RANDOM_SEED, help="Random seed")
    parser.add_argument("--cpu", action="store_true", help="Force CPU even when CUDA is available")
    parser.add_argument("--save-model", action="store_true", help="Save the trained model checkpoint")
    parser.add_argument("--no-plots", action="store_true", help="Skip chart generation")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    start_time = time.time()

    output_dir = create_directory(args.output_dir)
    device = setup_torch_device(prefer_cuda=not args.cpu)

    logger.info("=" * 60)
    logger.info("LOADING DATA")
    logger.info("=" * 60)
    try:
        sales_data = load_sales_csv(args.csv_path)
    except InputFormatError as e:
        logger.error(str(e))
        return 1

    logger.info("=" * 60)
    logger.info("TRAINING AND FORECASTING")
    logger.info("=" * 60)
    with tqdm(total=args.epochs, desc="Training model", disable=args.verbose) as progress_bar:
        def on_epoch_end(epoch: int, loss: float) -> None:
            progress_bar.update(1)
            progress_bar.set_postfix(loss=f"{loss:.4f}")

        try:
            result = train_and_forecast(
                sales_data,
                window_size=args.window_size,
                forecast_months=args.forecast_months,
                horizon=args.horizon,
                epochs=args.epochs,
                batch_size=args.batch_size,
                learning_rate=args.learning_rate,
                validation_split=args.validation_split,
                hidden_dim=args.hidden_dim,
                dense_dim=args.dense_dim,
                progress_callback=on_epoch_end,
                device=str(device),
                seed=args.random_seed
            )
        except TrainingError as e:
            logger.error(str(e))
            return 1

    logger.info("=" * 60)
    logger.info("SAVING RESULTS")
    logger.info("=" * 60)

    forecasts_path = output_dir / config.OUTPUT_CONFIG["forecasts_file_name"]
    save_json({"forecasts": [forecast.to_dict() for forecast in result.forecasts]}, forecasts_path)
    logger.info(f"Forecasts saved to: {forecasts_path}")

    preprocessed = result.preprocessed
    training_info = {
        'timestamp': time.strftime('%Y-%m-%d %H:%M:%S'),
        'hyperparameters': vars(args),
        'data_info': {
            'csv_path': args.csv_path,
            'rows': len(preprocessed),
            'products': list(preprocessed.encoding),
            'start_month': preprocessed.start_month,
            'last_month': preprocessed.last_month,
            'quantity_min': preprocessed.scale.min,
            'quantity_max': preprocessed.scale.max
        },
        'training_summary': {
            'epochs_trained': len(result.history['loss']),
            'final_train_loss': result.history['loss'][-1],
            'final_val_loss': result.history['val_loss'][-1] if result.history['val_loss'] else None,
            'metrics': result.metrics
        }
    }
    info_path = output_dir / config.OUTPUT_CONFIG["training_info_file_name"]
    save_json(training_info, info_path)
    logger.info(f"Training info saved to: {info_path}")

    if args.save_model:
        save_lstm(
            result.model,
            output_dir / config.OUTPUT_CONFIG["model_file_name"],
            metadata={
                'products': list(preprocessed.encoding),
                'quantity_min': preprocessed.scale.min,
                'quantity_max': preprocessed.scale.max,
                'start_month': preprocessed.start_month,
                'last_month': preprocessed.last_month,
                'last_offset': preprocessed.last_offset
            }
        )

    if not args.no_plots:
        plot_all_forecasts(sales_data, result.forecasts, output_dir / config.OUTPUT_CONFIG["chart_dir_name"])

    for forecast in result.forecasts:
        points = ", ".join(f"{p.calendar_month}: {p.predicted_quantity}" for p in forecast.predictions)
        logger.info(f"{forecast.product} -> {points}")

    logger.info(f"Total time: {format_time(time.time() - start_time)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
