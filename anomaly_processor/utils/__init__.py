# anomaly_processor/utils/__init__.py
"""
Utilities package for the anomaly processor.
"""

from .logging_utils import setup_logging
from .memory_utils import check_memory_threshold, log_memory_usage, tables_memory_mb

__all__ = ['setup_logging', 'log_memory_usage', 'check_memory_threshold', 'tables_memory_mb']
