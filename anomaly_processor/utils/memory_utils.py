# anomaly_processor/utils/memory_utils.py
"""
Memory Monitoring Utilities

Process and table memory reporting at pipeline stage boundaries.
"""

import logging
from typing import Iterable, Mapping, Optional, Union

import pandas as pd
import psutil

logger = logging.getLogger(__name__)

Tables = Union[Mapping[str, Optional[pd.DataFrame]], Iterable[Optional[pd.DataFrame]]]


def tables_memory_mb(tables: Tables) -> float:
    """Deep memory footprint of a collection of DataFrames, in MB. None entries are skipped."""
    frames = tables.values() if isinstance(tables, Mapping) else tables
    total_bytes = sum(int(frame.memory_usage(deep=True).sum()) for frame in frames if frame is not None)
    return total_bytes / 1024**2


def log_memory_usage(stage: str = "", tables: Optional[Tables] = None) -> None:
    """
    Log process memory, and the size of the given tables, at debug level.

    Args:
        stage: Description of current processing stage
        tables: Tables held at this stage, by key or as a sequence
    """
    stage_text = f" {stage}" if stage else ""

    try:
        rss_mb = psutil.Process().memory_info().rss / 1024**2
        available_gb = psutil.virtual_memory().available / 1024**3
    except psutil.Error as e:
        logger.warning(f"Could not get memory usage{stage_text}: {e}")
        return

    message = f"Memory{stage_text}: process {rss_mb:.1f} MB, {available_gb:.1f} GB available"
    if tables is not None:
        message += f", tables {tables_memory_mb(tables):.2f} MB"
    logger.debug(message)


def check_memory_threshold(threshold_percent: float = 80.0) -> bool:
    """
    Check if system memory usage is below threshold.

    Returns:
        True if below threshold, False otherwise
    """
    memory = psutil.virtual_memory()
    if memory.percent > threshold_percent:
        logger.warning(f"High memory usage: {memory.percent:.1f}% (threshold: {threshold_percent}%)")
        return False
    return True
