# anomaly_processor/summaries.py
"""
Summary Statistics Module

Aggregates the classified tables for reporting: annual means, linear
trends, decade statistics, category counts and seasonal means.
"""

import logging
from typing import Dict, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def annual_mean_anomalies(table: pd.DataFrame, group_column: str) -> pd.DataFrame:
    """
    Mean anomaly per year for each series.

    Args:
        table: Global or Hemisphere table
        group_column: Identifier or Hemisphere

    Returns:
        DataFrame with group_column, Year and Anomaly
    """
    return (
        table.groupby([group_column, 'Year'], observed=True)['Anomaly']
        .mean()
        .reset_index()
    )


def linear_trend(annual: pd.DataFrame) -> Dict[str, float]:
    """
    Fit a least-squares line to annual anomalies.

    Args:
        annual: DataFrame with Year and Anomaly columns

    Returns:
        Dictionary with slope_per_year, slope_per_decade, intercept, n_years

    Raises:
        ValueError: If fewer than two years are available
    """
    if len(annual) < 2:
        raise ValueError("At least two years are needed to fit a trend")

    slope, intercept = np.polyfit(annual['Year'].astype(float), annual['Anomaly'].astype(float), 1)
    return {
        'slope_per_year': float(slope),
        'slope_per_decade': float(slope * 10),
        'intercept': float(intercept),
        'n_years': int(len(annual))
    }


def trends_by_group(table: pd.DataFrame, group_column: str) -> Dict[str, Dict[str, float]]:
    """Linear trend of annual mean anomalies for each series."""
    annual = annual_mean_anomalies(table, group_column)
    return {
        str(group): linear_trend(rows)
        for group, rows in annual.groupby(group_column, observed=True)
    }


def decade_summary(table: pd.DataFrame, group_column: str) -> pd.DataFrame:
    """Mean, min, max and count of anomalies per decade for each series."""
    return (
        table.groupby([group_column, 'Decade'], observed=True)['Anomaly']
        .agg(['mean', 'min', 'max', 'count'])
        .reset_index()
    )


def category_counts(table: pd.DataFrame, group_column: str) -> pd.DataFrame:
    """
    Count records per climate period and temperature category.

    Every declared period and category appears, with zero counts where
    there are no records. Records without a period or category are not
    counted.
    """
    return (
        table.groupby([group_column, 'ClimatePeriod', 'TemperatureCategory'], observed=False)
        .size()
        .rename('count')
        .reset_index()
    )


def seasonal_means(hemisphere_table: pd.DataFrame) -> pd.DataFrame:
    """Mean anomaly per hemisphere, decade and season."""
    return (
        hemisphere_table.groupby(['Hemisphere', 'Decade', 'Season'], observed=True)['Anomaly']
        .mean()
        .reset_index()
    )


def format_summary_report(global_table: Optional[pd.DataFrame],
                          hemisphere_table: Optional[pd.DataFrame]) -> str:
    """
    Generate a human-readable summary of the output tables.

    Args:
        global_table: Global table, or None
        hemisphere_table: Hemisphere table, or None

    Returns:
        Formatted report
    """
    lines = ["=== Anomaly Summary ==="]

    for table, group_column in ((global_table, 'Identifier'), (hemisphere_table, 'Hemisphere')):
        if table is None or table.empty:
            continue

        for group, rows in table.groupby(group_column, observed=True):
            annual = annual_mean_anomalies(rows, group_column)
            warmest = annual.loc[annual['Anomaly'].idxmax()]
            lines.append(f"{group}: {len(rows)} monthly records, "
                         f"{rows['Year'].min()}-{rows['Year'].max()}")
            if len(annual) >= 2:
                trend = linear_trend(annual)
                lines.append(f"  Trend: {trend['slope_per_decade']:+.3f} degC per decade")
            lines.append(f"  Warmest year: {int(warmest['Year'])} ({warmest['Anomaly']:+.2f} degC)")
            unassigned = int(rows['TemperatureCategory'].isna().sum())
            if unassigned:
                lines.append(f"  Records above top category: {unassigned}")

    lines.append("=======================")
    return "\n".join(lines)
