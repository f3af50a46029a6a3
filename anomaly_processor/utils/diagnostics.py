# anomaly_processor/utils/diagnostics.py
"""
System Diagnostics Module

Reports system resources, installed dependencies, configuration, and the
state of the cached source tables.
"""

import logging
import platform
from importlib import metadata
from pathlib import Path
from typing import Any, Dict

import psutil

from ..config import get_config_summary
from ..exceptions import RetrievalError, SchemaMismatchError
from ..file_handler import GistempFileHandler, parse_gistemp_csv
from ..validation import validate_raw_table_structure

logger = logging.getLogger(__name__)

REQUIRED_PACKAGES = [
    'numpy', 'pandas', 'xarray', 'dask', 'psutil', 'tqdm', 'requests',
    'matplotlib', 'seaborn'
]


def get_system_info() -> Dict[str, Any]:
    """
    Get system information.

    Returns:
        Dictionary with system information
    """
    memory = psutil.virtual_memory()
    system_info = {
        'platform': platform.system(),
        'platform_release': platform.release(),
        'python_version': platform.python_version(),
        'cpu_count': psutil.cpu_count(logical=True),
        'memory': {
            'total_gb': memory.total / 1024**3,
            'available_gb': memory.available / 1024**3,
            'percent_used': memory.percent
        },
        'disk': {}
    }

    disk = psutil.disk_usage('.')
    system_info['disk']['.'] = {
        'total_gb': disk.total / 1024**3,
        'free_gb': disk.free / 1024**3,
        'percent_used': disk.percent
    }

    return system_info


def check_dependencies() -> Dict[str, str]:
    """
    Check that all required dependencies are installed.

    Returns:
        Dictionary mapping package names to installed version, or '' when missing
    """
    versions = {}

    for package in REQUIRED_PACKAGES:
        try:
            versions[package] = metadata.version(package)
            logger.debug(f"✓ {package} {versions[package]}")
        except metadata.PackageNotFoundError:
            versions[package] = ''
            logger.error(f"✗ {package} not available")

    return versions


def check_cached_sources(config: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Inspect the source tables already cached in the data directory.

    Args:
        config: Configuration dictionary

    Returns:
        Dictionary by region key with path, size and structure check result
    """
    file_handler = GistempFileHandler(config)

    if not Path(config['data_dir']).exists():
        logger.warning(f"Data directory does not exist yet: {config['data_dir']}")
        return {}

    results = {}
    for region_key, path in file_handler.discover_cached_files().items():
        entry = {'path': str(path), 'size_kb': path.stat().st_size / 1024, 'valid': False}
        try:
            raw = parse_gistemp_csv(path.read_bytes(), region_key)
            entry['valid'] = validate_raw_table_structure(raw, region_key)
            entry['years'] = f"{raw['Year'].min()}-{raw['Year'].max()}"
        except (RetrievalError, SchemaMismatchError) as e:
            entry['error'] = str(e)
        results[region_key] = entry

        status = "✓" if entry['valid'] else "✗"
        logger.info(f"{status} {region_key}: {path} ({entry['size_kb']:.1f} KB)")

    missing = [key for key in config['regions'] if key not in results]
    if missing:
        logger.info(f"Not cached yet (will be downloaded): {missing}")

    return results


def run_system_diagnostics(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run system diagnostics and log the results.

    Args:
        config: Configuration dictionary

    Returns:
        Dictionary with system, dependencies and cached_sources sections
    """
    logger.info("=== Anomaly Processor Diagnostics ===")

    logger.info("=== System Information ===")
    system_info = get_system_info()
    logger.info(f"Platform: {system_info['platform']} {system_info['platform_release']}")
    logger.info(f"Python version: {system_info['python_version']}")
    logger.info(f"CPU cores: {system_info['cpu_count']}")
    memory = system_info['memory']
    logger.info(f"Memory: {memory['total_gb']:.1f} GB total, "
                f"{memory['available_gb']:.1f} GB available ({memory['percent_used']:.1f}% used)")
    for path, disk_info in system_info['disk'].items():
        logger.info(f"Disk {path}: {disk_info['free_gb']:.1f} GB free of {disk_info['total_gb']:.1f} GB")

    logger.info(get_config_summary(config))

    logger.info("=== Dependency Check ===")
    dependencies = check_dependencies()
    missing = [pkg for pkg, version in dependencies.items() if not version]
    if missing:
        logger.error(f"✗ Missing dependencies: {missing}")
    else:
        logger.info("✓ All required dependencies available")

    logger.info("=== Cached Source Tables ===")
    cached_sources = check_cached_sources(config)

    return {
        'system': system_info,
        'dependencies': dependencies,
        'cached_sources': cached_sources
    }
