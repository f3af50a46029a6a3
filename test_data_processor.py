#!/usr/bin/env python3
"""
Tests for the region tasks, the table join and the full processing run.
"""

import os

import dask
import pandas as pd
import pytest

from anomaly_processor.config import get_default_config
from anomaly_processor.dask_utils import compute_tasks, configure_dask_resources
from anomaly_processor.data_processor import (
    GLOBAL_COLUMNS,
    HEMISPHERE_COLUMNS,
    AnomalyDataProcessor,
    build_global_table,
    build_hemisphere_table,
    process_region,
)
from anomaly_processor.exceptions import PipelineError, RetrievalError
from anomaly_processor.regions import MONTHS


def create_mock_raw_table(first_year, last_year, offset=0.0):
    """Create a raw table with a steady warming trend."""
    years = list(range(first_year, last_year + 1))
    data = {'Year': years}
    for i, month in enumerate(MONTHS):
        data[month] = [round(offset + (year - 1950) * 0.02 + i * 0.01, 3) for year in years]
    return pd.DataFrame(data)


class MockFileHandler:
    """Serves prepared raw tables instead of downloading them."""

    def __init__(self, raw_tables, failing=()):
        self.raw_tables = raw_tables
        self.failing = set(failing)
        self.requested = []

    def fetch_region(self, region_key):
        self.requested.append(region_key)
        if region_key in self.failing:
            raise RetrievalError(f"Failed to download {region_key}")
        return self.raw_tables[region_key]


def create_mock_config(tmp_path, **overrides):
    config = get_default_config()
    config.update({
        'data_dir': str(tmp_path / 'data'),
        'output_dir': str(tmp_path / 'output'),
        'log_file': None
    })
    config.update(overrides)
    return config


def create_mock_raw_tables():
    return {
        'GLB': create_mock_raw_table(1895, 2022),
        'NH': create_mock_raw_table(1895, 2022, offset=0.1),
        'SH': create_mock_raw_table(1895, 2022, offset=-0.1),
    }


def test_process_region():
    records = process_region(create_mock_raw_table(1898, 1902), 'NH', 1900)

    assert (records['Identifier'] == 'Northern').all()
    assert records['Year'].min() == 1900
    assert len(records) == 3 * 12
    assert records['ClimatePeriod'].notna().all()


def test_process_region_labels_end_to_end():
    records = process_region(create_mock_raw_table(1990, 1992), 'GLB', 1900)
    first_months = records[records['Month'] == 'Jan'].set_index('Year')

    assert first_months.loc[1990, 'Decade'] == 2000
    assert first_months.loc[1990, 'ClimatePeriod'] == "1960 - 1990"
    assert first_months.loc[1991, 'ClimatePeriod'] == "1990 - 2020"
    assert first_months.loc[1992, 'Decade'] == 2000


def test_process_region_drops_years_before_first_period():
    records = process_region(create_mock_raw_table(1885, 1902), 'GLB', 1880)

    assert records['Year'].min() >= 1900
    assert len(records) == 3 * 12
    assert (records['ClimatePeriod'] == "1900 - 1930").all()


def test_process_region_schema_failure():
    raw = create_mock_raw_table(1900, 1901).drop(columns=['Jun'])
    with pytest.raises(PipelineError) as excinfo:
        process_region(raw, 'SH', 1900)
    assert excinfo.value.region == 'SH'
    assert excinfo.value.stage == 'reshape'


def test_build_global_table():
    records = process_region(create_mock_raw_table(1900, 1901), 'GLB', 1900)
    table = build_global_table(records)

    assert list(table.columns) == GLOBAL_COLUMNS
    assert (table['Identifier'] == 'Global').all()
    assert len(table) == 24


def test_build_hemisphere_table_order_and_seasons():
    northern = process_region(create_mock_raw_table(1900, 1901), 'NH', 1900)
    southern = process_region(create_mock_raw_table(1900, 1901), 'SH', 1900)
    table = build_hemisphere_table(northern, southern)

    assert list(table.columns) == HEMISPHERE_COLUMNS
    assert len(table) == len(northern) + len(southern)
    assert (table['Hemisphere'].iloc[:len(northern)] == 'Northern').all()
    assert (table['Hemisphere'].iloc[len(northern):] == 'Southern').all()

    january = table[(table['Year'] == 1900) & (table['Month'] == 'Jan')]
    seasons = dict(zip(january['Hemisphere'].astype(str), january['Season'].astype(str)))
    assert seasons == {'Northern': 'Winter', 'Southern': 'Summer'}


def test_build_hemisphere_table_keeps_duplicates():
    northern = process_region(create_mock_raw_table(1900, 1900), 'NH', 1900)
    table = build_hemisphere_table(northern, northern.copy().assign(Identifier='Southern'))
    assert len(table) == 24
    assert table[['Year', 'Month', 'Anomaly']].duplicated().sum() == 12


def test_build_hemisphere_table_rejects_unknown_identifier():
    northern = process_region(create_mock_raw_table(1900, 1900), 'NH', 1900)
    other = process_region(create_mock_raw_table(1900, 1900), 'GLB', 1900)
    with pytest.raises(PipelineError) as excinfo:
        build_hemisphere_table(northern, other)
    assert excinfo.value.stage == 'combine'


def test_configure_dask_resources(tmp_path):
    assert configure_dask_resources(create_mock_config(tmp_path, parallel_processing=False), 3) == \
        {'scheduler': 'synchronous'}

    dask_config = configure_dask_resources(create_mock_config(tmp_path, max_workers=8), 2)
    assert dask_config['scheduler'] == 'threads'
    assert 1 <= dask_config['num_workers'] <= 2


def _double(value):
    return value * 2


@pytest.mark.parametrize("dask_config", [
    {'scheduler': 'synchronous'},
    {'scheduler': 'threads', 'num_workers': 3},
])
def test_compute_tasks_keeps_keys(dask_config):
    tasks = [(key, dask.delayed(_double)(value)) for key, value in [('NH', 1), ('SH', 2), ('GLB', 3)]]
    results = compute_tasks(tasks, dask_config)
    assert results == {'NH': 2, 'SH': 4, 'GLB': 6}


@pytest.mark.parametrize("parallel", [True, False])
def test_build_tables(tmp_path, parallel):
    config = create_mock_config(tmp_path, parallel_processing=parallel)
    processor = AnomalyDataProcessor(config, file_handler=MockFileHandler(create_mock_raw_tables()))

    global_table, hemisphere_table = processor.build_tables(create_mock_raw_tables())

    assert global_table['Year'].min() == 1900
    assert len(global_table) == (2022 - 1900 + 1) * 12
    assert len(hemisphere_table) == 2 * len(global_table)
    assert global_table['ClimatePeriod'].isna().sum() == 2 * 12


def test_build_tables_is_deterministic(tmp_path):
    serial = AnomalyDataProcessor(create_mock_config(tmp_path, parallel_processing=False))
    parallel = AnomalyDataProcessor(create_mock_config(tmp_path, parallel_processing=True))

    serial_tables = serial.build_tables(create_mock_raw_tables())
    parallel_tables = parallel.build_tables(create_mock_raw_tables())

    for serial_table, parallel_table in zip(serial_tables, parallel_tables):
        pd.testing.assert_frame_equal(serial_table, parallel_table)


def test_build_tables_global_only(tmp_path):
    config = create_mock_config(tmp_path, regions=['GLB'])
    processor = AnomalyDataProcessor(config, file_handler=MockFileHandler({}))

    global_table, hemisphere_table = processor.build_tables({'GLB': create_mock_raw_table(1900, 1905)})

    assert hemisphere_table is None
    assert len(global_table) == 6 * 12


def test_build_tables_missing_region(tmp_path):
    processor = AnomalyDataProcessor(create_mock_config(tmp_path), file_handler=MockFileHandler({}))
    with pytest.raises(PipelineError) as excinfo:
        processor.build_tables({'GLB': create_mock_raw_table(1900, 1901)})
    assert excinfo.value.region == 'NH'


def test_run_writes_tables(tmp_path):
    config = create_mock_config(tmp_path, print_summary=True)
    handler = MockFileHandler(create_mock_raw_tables())
    processor = AnomalyDataProcessor(config, file_handler=handler)

    assert processor.run()
    assert handler.requested == ['GLB', 'NH', 'SH']

    global_file = os.path.join(config['output_dir'], 'global_anomalies.csv')
    hemisphere_file = os.path.join(config['output_dir'], 'hemisphere_anomalies.csv')
    assert processor.saved_files == [global_file, hemisphere_file]

    global_table = pd.read_csv(global_file)
    hemisphere_table = pd.read_csv(hemisphere_file)
    assert list(global_table.columns) == GLOBAL_COLUMNS
    assert list(hemisphere_table.columns) == HEMISPHERE_COLUMNS
    assert hemisphere_table['Hemisphere'].iloc[0] == 'Northern'
    assert hemisphere_table['Hemisphere'].iloc[-1] == 'Southern'


def test_run_reports_failed_region(tmp_path, caplog):
    handler = MockFileHandler(create_mock_raw_tables(), failing=['SH'])
    processor = AnomalyDataProcessor(create_mock_config(tmp_path), file_handler=handler)

    assert not processor.run()
    assert 'region SH during fetch' in caplog.text
    assert not os.path.exists(os.path.join(tmp_path, 'output', 'global_anomalies.csv'))


def test_run_rejects_invalid_configuration(tmp_path):
    config = create_mock_config(tmp_path, regions=['NH'])
    processor = AnomalyDataProcessor(config, file_handler=MockFileHandler(create_mock_raw_tables()))
    assert not processor.run()
    assert processor.file_handler.requested == []


if __name__ == "__main__":
    pytest.main([__file__])
