#!/usr/bin/env python3
"""
Tests for configuration loading, command line overrides and region selection.
"""

import pytest

from anomaly_processor.config import (
    DEFAULT_CONFIG,
    get_config_summary,
    get_default_config,
    load_configuration,
    override_config,
    validate_configuration,
)
from anomaly_processor.main import parse_arguments
from anomaly_processor.regions import get_region, get_region_summary, validate_region_keys


def test_default_config_is_valid():
    config = get_default_config()

    assert config['regions'] == ['GLB', 'NH', 'SH']
    assert config['first_year'] == 1900
    assert config['output_format'] == 'csv'
    assert config['use_cache'] is True
    assert validate_configuration(config)


def test_load_configuration_creates_default_file(tmp_path):
    config_file = tmp_path / 'anomaly_config.ini'
    config = load_configuration(str(config_file))

    assert config_file.exists()
    assert config['_config_file'] == str(config_file)
    assert config['base_url'] == DEFAULT_CONFIG['source']['base_url']


def test_load_configuration_reads_values(tmp_path):
    config_file = tmp_path / 'custom.ini'
    config_file.write_text(
        "[paths]\n"
        "output_dir = /tmp/anomalies\n"
        "[source]\n"
        "regions = GLB\n"
        "retries = 5\n"
        "[processing]\n"
        "first_year = 1950\n"
        "parallel_processing = False\n"
        "[output]\n"
        "output_format = NetCDF\n"
    )

    config = load_configuration(str(config_file))

    assert config['output_dir'] == '/tmp/anomalies'
    assert config['regions'] == ['GLB']
    assert config['retries'] == 5
    assert config['first_year'] == 1950
    assert config['parallel_processing'] is False
    assert config['output_format'] == 'netcdf'
    # Unset keys fall back to defaults
    assert config['timeout'] == 30.0
    assert config['data_dir'] == DEFAULT_CONFIG['paths']['data_dir']


def test_override_config_from_arguments():
    args = parse_arguments([
        '--regions', 'NH, SH',
        '--output-dir', 'out',
        '--output-format', 'netcdf',
        '--first-year', '1920',
        '--no-cache',
        '--plots',
        '--summary',
    ])
    config = override_config(get_default_config(), args)

    assert config['regions'] == ['NH', 'SH']
    assert config['output_dir'] == 'out'
    assert config['output_format'] == 'netcdf'
    assert config['first_year'] == 1920
    assert config['use_cache'] is False
    assert config['make_plots'] is True
    assert config['print_summary'] is True


def test_override_config_without_arguments():
    config = override_config(get_default_config(), parse_arguments([]))
    assert config == get_default_config()


def test_parse_arguments_rejects_unknown_format():
    with pytest.raises(SystemExit):
        parse_arguments(['--output-format', 'parquet'])


@pytest.mark.parametrize("key,value", [
    ('regions', ['NH']),
    ('regions', ['GLB', 'XX']),
    ('regions', []),
    ('output_format', 'parquet'),
    ('timeout', 0),
    ('retries', -1),
    ('first_year', 1899),
    ('max_workers', 0),
    ('first_year', 1800),
    ('log_level', 'LOUD'),
])
def test_validate_configuration_rejects(key, value):
    config = get_default_config()
    config[key] = value
    assert not validate_configuration(config)


@pytest.mark.parametrize("keys,expected", [
    (['GLB'], True),
    (['NH', 'SH'], True),
    (['SH', 'NH', 'GLB'], True),
    (['SH'], False),
    (['GLB', 'NH'], False),
    ([], False),
])
def test_validate_region_keys(keys, expected):
    assert validate_region_keys(keys) is expected


def test_get_region():
    assert get_region('SH').name == 'Southern'
    assert get_region('GLB').file_name == 'GLB.Ts+dSST.csv'
    with pytest.raises(KeyError):
        get_region('EU')


def test_summaries_mention_settings():
    summary = get_config_summary(get_default_config())
    assert 'Regions: GLB, NH, SH' in summary
    assert 'Northern' in get_region_summary()


if __name__ == "__main__":
    pytest.main([__file__])
