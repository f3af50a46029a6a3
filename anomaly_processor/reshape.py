# anomaly_processor/reshape.py
"""
Reshaping Module

Converts a wide year-by-month anomaly table into long format, one row per
observed month.
"""

import logging

import pandas as pd

from .regions import MONTHS, RAW_COLUMNS, YEAR_COLUMN
from .validation import require_columns

logger = logging.getLogger(__name__)

MONTH_DTYPE = pd.CategoricalDtype(list(MONTHS), ordered=True)

TIDY_COLUMNS = ['Identifier', 'Year', 'Month', 'Anomaly']


def tidy_raw_table(raw: pd.DataFrame, identifier: str) -> pd.DataFrame:
    """
    Reshape a raw table to long format.

    Every non-missing (year, month) cell becomes one row; missing cells are
    dropped rather than kept as nulls. Month carries the month code as an
    ordered categorical, so it never depends on row position.

    Args:
        raw: Wide table with a Year column and the twelve month columns
        identifier: Region name to tag every row with

    Returns:
        DataFrame with columns Identifier, Year, Month, Anomaly, ordered by
        year then month

    Raises:
        SchemaMismatchError: If Year or any month column is absent
    """
    require_columns(raw, RAW_COLUMNS, identifier)

    long_df = raw.loc[:, list(RAW_COLUMNS)].melt(
        id_vars=YEAR_COLUMN,
        value_vars=list(MONTHS),
        var_name='Month',
        value_name='Anomaly'
    )
    long_df = long_df.dropna(subset=['Anomaly'])

    long_df['Year'] = long_df['Year'].astype(int)
    long_df['Month'] = long_df['Month'].astype(MONTH_DTYPE)
    long_df['Anomaly'] = long_df['Anomaly'].astype(float)
    long_df.insert(0, 'Identifier', identifier)

    # melt emits month-major order
    long_df = long_df.sort_values(['Year', 'Month'], kind='stable').reset_index(drop=True)

    logger.debug(f"Reshaped {identifier}: {len(raw)} years -> {len(long_df)} monthly records")
    return long_df[TIDY_COLUMNS]
