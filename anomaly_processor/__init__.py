"""
Anomaly Processor

Tidy and classify the GISTEMP global and hemispheric monthly temperature
anomaly tables.
"""

__version__ = "1.0.0"

from .classification import (
    calculate_decade,
    classify_climate_period,
    classify_records,
    classify_season,
    classify_temperature,
)
from .config import load_configuration
from .data_processor import AnomalyDataProcessor, build_global_table, build_hemisphere_table
from .exceptions import AnomalyProcessorError, PipelineError, RetrievalError, SchemaMismatchError
from .file_handler import fetch_region
from .reshape import tidy_raw_table

__all__ = [
    'AnomalyDataProcessor',
    'AnomalyProcessorError',
    'PipelineError',
    'RetrievalError',
    'SchemaMismatchError',
    'build_global_table',
    'build_hemisphere_table',
    'calculate_decade',
    'classify_climate_period',
    'classify_records',
    'classify_season',
    'classify_temperature',
    'fetch_region',
    'load_configuration',
    'tidy_raw_table',
]
