# anomaly_processor/file_handler.py
"""
File Handler Module

Downloads, caches and parses the GISTEMP global and hemispheric anomaly
tables.
"""

import io
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd
import requests

from .config import get_default_config
from .exceptions import RetrievalError
from .regions import MONTHS, RAW_COLUMNS, REGION_SOURCES, YEAR_COLUMN, get_region
from .validation import require_columns

logger = logging.getLogger(__name__)

# Markers GISTEMP uses for months without data
MISSING_VALUE_MARKERS = ['***', '****', '*****']

REQUEST_HEADERS = {'User-Agent': 'anomaly-processor/1.0 (+https://data.giss.nasa.gov/gistemp/)'}


def parse_gistemp_csv(payload: Union[bytes, str], region_key: str = "table") -> pd.DataFrame:
    """
    Parse a GISTEMP table CSV into a raw year-by-month table.

    The file starts with a one-line title, followed by a header row that
    begins with "Year". Annual and seasonal aggregate columns (J-D, D-N,
    DJF, ...) are dropped, as are any trailing rows whose Year is not a
    number.

    Args:
        payload: File content
        region_key: Region identifier, for error messages

    Returns:
        DataFrame with Year (int) and the twelve month columns (float, NaN
        for missing)

    Raises:
        RetrievalError: If the payload is empty or cannot be decoded or read
        SchemaMismatchError: If Year or any month column is absent
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError as e:
            raise RetrievalError(f"Cannot decode {region_key} source file") from e

    lines = payload.splitlines()
    if not any(line.strip() for line in lines):
        raise RetrievalError(f"Empty source file for {region_key}")

    # Skip title lines above the header row
    header_index = next(
        (i for i, line in enumerate(lines) if line.strip().startswith(YEAR_COLUMN)),
        0
    )

    try:
        raw = pd.read_csv(
            io.StringIO("\n".join(lines[header_index:])),
            na_values=MISSING_VALUE_MARKERS,
            skipinitialspace=True
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise RetrievalError(f"Cannot parse {region_key} source file: {e}") from e

    raw.columns = [str(column).strip() for column in raw.columns]
    require_columns(raw, RAW_COLUMNS, region_key)

    raw = raw.loc[:, list(RAW_COLUMNS)]
    years = pd.to_numeric(raw[YEAR_COLUMN], errors='coerce')
    raw = raw.loc[years.notna()].copy()
    raw[YEAR_COLUMN] = years[years.notna()].astype(int)
    for month in MONTHS:
        raw[month] = pd.to_numeric(raw[month], errors='coerce')

    return raw.reset_index(drop=True)


class GistempFileHandler:
    """Handles retrieval and caching of the GISTEMP source tables."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the file handler with configuration.

        Args:
            config: Configuration dictionary (data_dir, base_url, timeout,
                retries, backoff, use_cache)
        """
        self.config = config
        self.data_dir = Path(config['data_dir'])
        self.base_url = config['base_url'].rstrip('/')
        self.timeout = config['timeout']
        self.retries = config['retries']
        self.backoff = config['backoff']
        self.use_cache = config['use_cache']

    def get_source_url(self, region_key: str) -> str:
        """Get the download URL for a region's table."""
        return f"{self.base_url}/{get_region(region_key).file_name}"

    def get_cache_path(self, region_key: str) -> Path:
        """Get the local cache path for a region's table."""
        return self.data_dir / get_region(region_key).file_name

    def download(self, region_key: str) -> bytes:
        """
        Download a region's table, retrying with exponential backoff.

        The first attempt is followed by up to `retries` more.

        Args:
            region_key: Region identifier

        Returns:
            Raw file content

        Raises:
            RetrievalError: If every attempt fails
        """
        url = self.get_source_url(region_key)

        attempts = self.retries + 1

        for attempt in range(1, attempts + 1):
            try:
                logger.info(f"Downloading {url} (attempt {attempt}/{attempts})")
                response = requests.get(url, timeout=self.timeout, headers=REQUEST_HEADERS)
                response.raise_for_status()
                return response.content
            except requests.RequestException as e:
                if attempt == attempts:
                    raise RetrievalError(
                        f"Failed to download {url} after {attempts} attempts"
                    ) from e
                delay = self.backoff * 2 ** (attempt - 1)
                logger.warning(f"Download failed ({e}); retrying in {delay:.1f}s")
                time.sleep(delay)

    def fetch_region(self, region_key: str) -> pd.DataFrame:
        """
        Get a region's raw table, from the local cache when allowed.

        Args:
            region_key: Region identifier

        Returns:
            Raw year-by-month table

        Raises:
            RetrievalError: On network, file or format failure
            SchemaMismatchError: If the table lacks expected columns
        """
        cache_path = self.get_cache_path(region_key)

        if self.use_cache and cache_path.exists():
            logger.info(f"Using cached {region_key} table: {cache_path}")
            try:
                payload = cache_path.read_bytes()
            except OSError as e:
                raise RetrievalError(f"Cannot read cached file {cache_path}") from e
            raw = parse_gistemp_csv(payload, region_key)
        else:
            payload = self.download(region_key)
            raw = parse_gistemp_csv(payload, region_key)
            # Only payloads that parse are cached
            try:
                cache_path.parent.mkdir(parents=True, exist_ok=True)
                cache_path.write_bytes(payload)
            except OSError as e:
                logger.warning(f"Could not cache {region_key} table at {cache_path}: {e}")

        logger.info(f"Loaded {region_key}: {len(raw)} years "
                    f"({raw[YEAR_COLUMN].min()}-{raw[YEAR_COLUMN].max()})")
        return raw

    def discover_cached_files(self) -> Dict[str, Path]:
        """
        Find source tables already present in the data directory.

        Returns:
            Mapping of region key to cached file path
        """
        cached = {}
        for region_key in REGION_SOURCES:
            path = self.get_cache_path(region_key)
            if path.exists():
                cached[region_key] = path
        logger.debug(f"Found {len(cached)} cached source files in {self.data_dir}")
        return cached


def fetch_region(region_key: str, config: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    """
    Fetch one region's raw table.

    Args:
        region_key: Region identifier (GLB, NH, SH)
        config: Configuration dictionary; defaults are used when omitted

    Returns:
        Raw year-by-month table
    """
    if config is None:
        config = get_default_config()
    return GistempFileHandler(config).fetch_region(region_key)
