# anomaly_processor/config.py
"""
Configuration Management Module

Handles loading, validation, and management of configuration settings
for the anomaly processor.
"""

import configparser
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .classification import FIRST_PERIOD_START
from .regions import validate_region_keys

logger = logging.getLogger(__name__)

VALID_OUTPUT_FORMATS = ['csv', 'netcdf']
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Default configuration values
DEFAULT_CONFIG = {
    'paths': {
        'data_dir': 'data/gistemp',
        'output_dir': 'output/anomaly_tables'
    },
    'source': {
        'base_url': 'https://data.giss.nasa.gov/gistemp/tabledata_v4',
        'regions': 'GLB,NH,SH',
        'timeout': '30',
        'retries': '3',
        'backoff': '2.0',
        'use_cache': 'True'
    },
    'processing': {
        'first_year': '1900',
        'parallel_processing': 'True',
        'max_workers': '3'
    },
    'output': {
        'output_format': 'csv',
        'make_plots': 'False',
        'print_summary': 'False'
    },
    'logging': {
        'log_level': 'INFO',
        'log_file': 'anomaly_processing.log'
    }
}


def create_default_config_file(config_path: str) -> None:
    """Create a default configuration file."""
    config = configparser.ConfigParser()
    config.read_dict(DEFAULT_CONFIG)

    with open(config_path, 'w') as f:
        config.write(f)

    logger.info(f"Created default configuration file: {config_path}")


def _parse_config(config: configparser.ConfigParser) -> Dict[str, Any]:
    """Convert a parsed INI file to a flat dictionary with proper types."""
    config_dict = {}

    # Paths
    config_dict['data_dir'] = config.get('paths', 'data_dir',
                                         fallback=DEFAULT_CONFIG['paths']['data_dir'])
    config_dict['output_dir'] = config.get('paths', 'output_dir',
                                           fallback=DEFAULT_CONFIG['paths']['output_dir'])

    # Source
    config_dict['base_url'] = config.get('source', 'base_url',
                                         fallback=DEFAULT_CONFIG['source']['base_url'])
    regions_str = config.get('source', 'regions',
                             fallback=DEFAULT_CONFIG['source']['regions'])
    config_dict['regions'] = [r.strip() for r in regions_str.split(',') if r.strip()]
    config_dict['timeout'] = config.getfloat('source', 'timeout',
                                             fallback=float(DEFAULT_CONFIG['source']['timeout']))
    config_dict['retries'] = config.getint('source', 'retries',
                                           fallback=int(DEFAULT_CONFIG['source']['retries']))
    config_dict['backoff'] = config.getfloat('source', 'backoff',
                                             fallback=float(DEFAULT_CONFIG['source']['backoff']))
    config_dict['use_cache'] = config.getboolean('source', 'use_cache', fallback=True)

    # Processing
    config_dict['first_year'] = config.getint('processing', 'first_year',
                                              fallback=int(DEFAULT_CONFIG['processing']['first_year']))
    config_dict['parallel_processing'] = config.getboolean('processing', 'parallel_processing',
                                                           fallback=True)
    config_dict['max_workers'] = config.getint('processing', 'max_workers',
                                               fallback=int(DEFAULT_CONFIG['processing']['max_workers']))

    # Output
    config_dict['output_format'] = config.get('output', 'output_format',
                                              fallback=DEFAULT_CONFIG['output']['output_format']).lower()
    config_dict['make_plots'] = config.getboolean('output', 'make_plots', fallback=False)
    config_dict['print_summary'] = config.getboolean('output', 'print_summary', fallback=False)

    # Logging
    config_dict['log_level'] = config.get('logging', 'log_level',
                                          fallback=DEFAULT_CONFIG['logging']['log_level'])
    config_dict['log_file'] = config.get('logging', 'log_file',
                                         fallback=DEFAULT_CONFIG['logging']['log_file'])

    return config_dict


def get_default_config() -> Dict[str, Any]:
    """Get the default configuration without touching the filesystem."""
    config = configparser.ConfigParser()
    config.read_dict(DEFAULT_CONFIG)
    config_dict = _parse_config(config)
    config_dict['_config_file'] = 'default'
    return config_dict


def load_configuration(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or create default.

    Args:
        config_file: Path to configuration file. If None, uses 'anomaly_config.ini'

    Returns:
        Dictionary containing configuration values
    """
    if config_file is None:
        config_file = 'anomaly_config.ini'

    config_path = Path(config_file)

    # Create default config if it doesn't exist
    if not config_path.exists():
        create_default_config_file(str(config_path))

    config = configparser.ConfigParser()
    config.read(config_path)

    config_dict = _parse_config(config)

    # Store config file path for reference
    config_dict['_config_file'] = str(config_path)

    return config_dict


def override_config(config: Dict[str, Any], args) -> Dict[str, Any]:
    """
    Override configuration values with command line arguments.

    Args:
        config: Base configuration dictionary
        args: Parsed command line arguments

    Returns:
        Updated configuration dictionary
    """
    if args.regions:
        config['regions'] = [r.strip() for r in args.regions.split(',') if r.strip()]
        logger.info(f"Regions overridden to: {config['regions']}")

    if args.output_dir:
        config['output_dir'] = args.output_dir
        logger.info(f"Output directory overridden to: {args.output_dir}")

    if args.output_format:
        config['output_format'] = args.output_format.lower()
        logger.info(f"Output format overridden to: {config['output_format']}")

    if args.first_year is not None:
        config['first_year'] = args.first_year
        logger.info(f"First year overridden to: {args.first_year}")

    if args.no_cache:
        config['use_cache'] = False
        logger.info("Cached source files will be ignored")

    if args.plots:
        config['make_plots'] = True

    if args.summary:
        config['print_summary'] = True

    return config


def validate_configuration(config: Dict[str, Any]) -> bool:
    """
    Validate configuration values.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid, False otherwise
    """
    errors = []

    if not validate_region_keys(config['regions']):
        errors.append(f"Invalid region selection: {config['regions']}")

    # Validate numeric values
    if config['timeout'] <= 0:
        errors.append("Timeout must be positive")

    if config['retries'] < 0:
        errors.append("Retries must not be negative")

    if config['backoff'] < 0:
        errors.append("Backoff must not be negative")

    if config['max_workers'] <= 0:
        errors.append("Max workers must be positive")

    if config['first_year'] < FIRST_PERIOD_START:
        errors.append(f"First year must not be before {FIRST_PERIOD_START}, the first climate period start")

    if config['output_format'] not in VALID_OUTPUT_FORMATS:
        errors.append(f"Invalid output format: {config['output_format']}. "
                      f"Valid options: {VALID_OUTPUT_FORMATS}")

    if str(config['log_level']).upper() not in VALID_LOG_LEVELS:
        errors.append(f"Invalid log level: {config['log_level']}")

    # Log errors
    for error in errors:
        logger.error(f"Configuration error: {error}")

    return len(errors) == 0


def get_config_summary(config: Dict[str, Any]) -> str:
    """
    Generate a summary of the current configuration.

    Args:
        config: Configuration dictionary

    Returns:
        Formatted configuration summary
    """
    summary = [
        "=== Configuration Summary ===",
        f"Data Directory: {config['data_dir']}",
        f"Output Directory: {config['output_dir']}",
        f"Source URL: {config['base_url']}",
        f"Regions: {', '.join(config['regions'])}",
        f"Timeout: {config['timeout']}s, Retries: {config['retries']}, Backoff: {config['backoff']}s",
        f"Use Cache: {config['use_cache']}",
        f"First Year: {config['first_year']}",
        f"Parallel Processing: {config['parallel_processing']}",
        f"Max Workers: {config['max_workers']}",
        f"Output Format: {config['output_format']}",
        f"Plots: {config['make_plots']}",
        f"Log Level: {config['log_level']}",
        "=========================="
    ]

    return "\n".join(summary)
