# anomaly_processor/validation.py
"""
Validation Module

Structure and data quality checks for raw year-by-month anomaly tables.
"""

import logging
from typing import Any, Dict, Iterable

import numpy as np
import pandas as pd

from .exceptions import SchemaMismatchError
from .regions import MONTHS, RAW_COLUMNS, YEAR_COLUMN

logger = logging.getLogger(__name__)


def require_columns(table: pd.DataFrame, columns: Iterable[str], table_name: str = "table") -> None:
    """
    Raise if any expected column is absent.

    Args:
        table: Table to check
        columns: Column names that must be present
        table_name: Name used in the error message

    Raises:
        SchemaMismatchError: If one or more columns are missing
    """
    missing = [column for column in columns if column not in table.columns]
    if missing:
        raise SchemaMismatchError(table_name, missing)


def validate_raw_table_structure(raw: pd.DataFrame, region_key: str) -> bool:
    """
    Validate that a raw table has the Year column, all month columns and rows.

    Args:
        raw: Raw year-by-month table
        region_key: Region identifier, for log messages

    Returns:
        True if table structure is valid
    """
    try:
        require_columns(raw, RAW_COLUMNS, region_key)
    except SchemaMismatchError as e:
        logger.warning(f"Invalid structure for {region_key}: {e}")
        return False

    if raw.empty:
        logger.warning(f"No rows in raw table for {region_key}")
        return False

    if not pd.api.types.is_numeric_dtype(raw[YEAR_COLUMN]):
        logger.warning(f"Non-numeric {YEAR_COLUMN} column in {region_key}")
        return False

    return True


def validate_data_quality(raw: pd.DataFrame, region_key: str) -> Dict[str, Any]:
    """
    Perform data quality checks on a raw table.

    Args:
        raw: Raw year-by-month table with the canonical columns
        region_key: Region identifier

    Returns:
        Dictionary with validation results
    """
    results = {
        'valid': True,
        'warnings': [],
        'errors': [],
        'statistics': {}
    }

    values = raw[list(MONTHS)].to_numpy(dtype=float)
    years = raw[YEAR_COLUMN].to_numpy()

    if values.size == 0 or np.isnan(values).all():
        results['valid'] = False
        results['errors'].append("All anomaly data is missing")
        return results

    finite = values[~np.isnan(values)]
    missing_percent = float(np.isnan(values).mean() * 100)
    results['statistics'] = {
        'min': float(finite.min()),
        'max': float(finite.max()),
        'mean': float(finite.mean()),
        'missing_percent': missing_percent,
        'first_year': int(years.min()),
        'last_year': int(years.max())
    }

    if not np.isfinite(finite).all():
        results['valid'] = False
        results['errors'].append("Data contains infinite values")

    if len(years) > 1 and not (np.diff(years) == 1).all():
        results['valid'] = False
        results['errors'].append("Years are not contiguous and ascending")

    if missing_percent > 10:
        results['warnings'].append(f"High amount of missing data: {missing_percent:.1f}%")

    # Monthly anomalies beyond 5 degrees have never been recorded in these series
    min_val = results['statistics']['min']
    max_val = results['statistics']['max']
    if min_val < -5 or max_val > 5:
        results['warnings'].append(f"Anomalies outside typical range: {min_val:.2f} to {max_val:.2f}")

    if min_val == max_val:
        results['warnings'].append("Data contains only constant values")

    for warning in results['warnings']:
        logger.warning(f"{region_key}: {warning}")
    for error in results['errors']:
        logger.error(f"{region_key}: {error}")

    return results
