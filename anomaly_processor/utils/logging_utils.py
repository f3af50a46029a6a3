# anomaly_processor/utils/logging_utils.py
"""
Logging Utilities Module

Logging configuration for the command-line entry point.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers kept at WARNING unless running verbose
NOISY_LOGGERS = ('urllib3', 'requests', 'matplotlib', 'PIL', 'fsspec')


def setup_logging(config: Dict[str, Any], verbose: bool = False) -> None:
    """
    Configure the root logger from the logging section of the config.

    Console output goes to stdout; when log_file is set, the same records
    are appended to it (its directory is created if needed). Python
    warnings raised by pandas or xarray are routed into the log.

    Args:
        config: Configuration dictionary (log_level, log_file)
        verbose: Log at DEBUG regardless of log_level, dask included
    """
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, str(config.get('log_level', 'INFO')).upper(), logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = config.get('log_file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.captureWarnings(True)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger('dask').setLevel(logging.DEBUG if verbose else logging.WARNING)
