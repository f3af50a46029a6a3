# anomaly_processor/regions.py
"""
Regional Definitions

Source series for the GISTEMP global and hemispheric temperature anomaly
tables, and the fixed layout of their year-by-month columns.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

logger = logging.getLogger(__name__)

# Canonical month columns, in calendar order
MONTHS: Tuple[str, ...] = (
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec'
)
YEAR_COLUMN = 'Year'
RAW_COLUMNS: Tuple[str, ...] = (YEAR_COLUMN,) + MONTHS


@dataclass(frozen=True)
class RegionSource:
    """One GISTEMP anomaly series."""
    key: str
    name: str
    file_name: str
    title: str


REGION_SOURCES: Dict[str, RegionSource] = {
    'GLB': RegionSource(
        key='GLB',
        name='Global',
        file_name='GLB.Ts+dSST.csv',
        title='Land-Ocean: Global Means'
    ),
    'NH': RegionSource(
        key='NH',
        name='Northern',
        file_name='NH.Ts+dSST.csv',
        title='Land-Ocean: Northern Hemispheric Means'
    ),
    'SH': RegionSource(
        key='SH',
        name='Southern',
        file_name='SH.Ts+dSST.csv',
        title='Land-Ocean: Southern Hemispheric Means'
    ),
}

GLOBAL_KEY = 'GLB'
# Hemisphere table rows are concatenated in this order
HEMISPHERE_KEYS: Tuple[str, ...] = ('NH', 'SH')


def get_region(region_key: str) -> RegionSource:
    """
    Get a region source by its key.

    Args:
        region_key: Region identifier (GLB, NH, SH)

    Returns:
        RegionSource for the key

    Raises:
        KeyError: If region_key is not defined
    """
    if region_key not in REGION_SOURCES:
        raise KeyError(f"Region '{region_key}' not found. "
                       f"Available regions: {list(REGION_SOURCES.keys())}")
    return REGION_SOURCES[region_key]


def validate_region_keys(region_keys: Iterable[str]) -> bool:
    """
    Check that every key is defined and that hemispheres are requested as a pair.

    Args:
        region_keys: Region identifiers to validate

    Returns:
        True if the selection is usable, False otherwise
    """
    keys = list(region_keys)
    if not keys:
        logger.error("No regions selected")
        return False

    unknown = [key for key in keys if key not in REGION_SOURCES]
    if unknown:
        logger.error(f"Unknown region keys: {unknown}")
        logger.info(f"Available regions: {list(REGION_SOURCES.keys())}")
        return False

    hemispheres = [key for key in keys if key in HEMISPHERE_KEYS]
    if hemispheres and set(hemispheres) != set(HEMISPHERE_KEYS):
        logger.error(f"Hemisphere table needs both {HEMISPHERE_KEYS}, got {hemispheres}")
        return False

    return True


def get_region_summary() -> str:
    """Generate a summary of all defined regions."""
    summary = ["=== Defined Regions ==="]

    for region_key, region in REGION_SOURCES.items():
        summary.append(f"{region_key}: {region.name}")
        summary.append(f"  File: {region.file_name}")
        summary.append(f"  Title: {region.title}")
        summary.append("")

    return "\n".join(summary)
