#!/usr/bin/env python3
"""
Tests for summary statistics, the summary report and the charts.
"""

import os

import numpy as np
import pandas as pd
import pytest

from anomaly_processor.classification import TEMPERATURE_CATEGORY_LABELS, CLIMATE_PERIOD_LABELS
from anomaly_processor.data_processor import build_global_table, build_hemisphere_table, process_region
from anomaly_processor.plotting import create_all_plots
from anomaly_processor.regions import MONTHS
from anomaly_processor.summaries import (
    annual_mean_anomalies,
    category_counts,
    decade_summary,
    format_summary_report,
    linear_trend,
    seasonal_means,
    trends_by_group,
)


def create_mock_raw_table(first_year, last_year, slope=0.02):
    """Create a raw table whose annual mean rises by slope per year."""
    years = list(range(first_year, last_year + 1))
    data = {'Year': years}
    for i, month in enumerate(MONTHS):
        offset = (i - 5.5) * 0.02
        data[month] = [round((year - first_year) * slope + offset, 4) for year in years]
    return pd.DataFrame(data)


def create_mock_tables(first_year=1900, last_year=1999):
    global_table = build_global_table(
        process_region(create_mock_raw_table(first_year, last_year), 'GLB', first_year)
    )
    hemisphere_table = build_hemisphere_table(
        process_region(create_mock_raw_table(first_year, last_year, slope=0.01), 'NH', first_year),
        process_region(create_mock_raw_table(first_year, last_year, slope=0.03), 'SH', first_year)
    )
    return global_table, hemisphere_table


def test_annual_mean_anomalies():
    global_table, _ = create_mock_tables(1900, 1904)
    annual = annual_mean_anomalies(global_table, 'Identifier')

    assert annual['Year'].tolist() == [1900, 1901, 1902, 1903, 1904]
    np.testing.assert_allclose(annual['Anomaly'], [0.0, 0.02, 0.04, 0.06, 0.08], atol=1e-6)


def test_linear_trend_recovers_slope():
    annual = pd.DataFrame({'Year': np.arange(1950, 2000), 'Anomaly': 0.015 * np.arange(50) - 0.2})
    trend = linear_trend(annual)

    np.testing.assert_allclose(trend['slope_per_year'], 0.015)
    np.testing.assert_allclose(trend['slope_per_decade'], 0.15)
    assert trend['n_years'] == 50


def test_linear_trend_needs_two_years():
    with pytest.raises(ValueError):
        linear_trend(pd.DataFrame({'Year': [2000], 'Anomaly': [0.5]}))


def test_trends_by_group():
    _, hemisphere_table = create_mock_tables()
    trends = trends_by_group(hemisphere_table, 'Hemisphere')

    assert set(trends) == {'Northern', 'Southern'}
    np.testing.assert_allclose(trends['Northern']['slope_per_decade'], 0.1, atol=1e-6)
    np.testing.assert_allclose(trends['Southern']['slope_per_decade'], 0.3, atol=1e-6)


def test_decade_summary():
    global_table, _ = create_mock_tables(1900, 1919)
    summary = decade_summary(global_table, 'Identifier')

    assert summary['Decade'].tolist() == [1910, 1920]
    assert summary['count'].tolist() == [120, 120]


def test_category_counts_include_empty_categories():
    global_table, _ = create_mock_tables()
    counts = category_counts(global_table, 'Identifier')

    assert len(counts) == len(CLIMATE_PERIOD_LABELS) * len(TEMPERATURE_CATEGORY_LABELS)
    assert counts['count'].sum() == global_table['TemperatureCategory'].notna().sum()
    assert (counts['count'] == 0).any()


def test_seasonal_means():
    _, hemisphere_table = create_mock_tables(1900, 1909)
    means = seasonal_means(hemisphere_table)

    assert len(means) == 2 * 4
    assert set(means['Season'].astype(str)) == {'Winter', 'Spring', 'Summer', 'Autumn'}


def test_format_summary_report():
    global_table, hemisphere_table = create_mock_tables()
    report = format_summary_report(global_table, hemisphere_table)

    assert 'Global: 1200 monthly records, 1900-1999' in report
    assert 'Northern' in report
    assert 'Southern' in report
    assert 'Warmest year: 1999' in report


def test_format_summary_report_without_tables():
    report = format_summary_report(None, None)
    assert report.startswith("=== Anomaly Summary ===")


def test_create_all_plots(tmp_path):
    global_table, hemisphere_table = create_mock_tables(1900, 1949)
    saved = create_all_plots(global_table, hemisphere_table, str(tmp_path))

    assert len(saved) == 4
    for path in saved:
        assert os.path.exists(path)
        assert path.endswith('.png')


def test_create_all_plots_global_only(tmp_path):
    global_table, _ = create_mock_tables(1900, 1919)
    saved = create_all_plots(global_table, None, str(tmp_path))
    assert [os.path.basename(path) for path in saved] == \
        ['annual_anomalies.png', 'global_category_distribution.png']


if __name__ == "__main__":
    pytest.main([__file__])
