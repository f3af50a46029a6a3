"""
Main Data Processing Module

Orchestrates the tidy-and-classify pipeline: every region's raw table is
reshaped and classified as an independent task, then the results are joined
into the Global table and the Hemisphere table.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

import dask
import pandas as pd
from tqdm import tqdm

from .classification import (
    HEMISPHERE_DTYPE,
    HEMISPHERES,
    assign_seasons,
    classify_records,
)
from .config import validate_configuration
from .dask_utils import compute_tasks, configure_dask_resources
from .exceptions import PipelineError, RetrievalError, SchemaMismatchError
from .file_handler import GistempFileHandler
from .io_utils import save_tables
from .regions import GLOBAL_KEY, HEMISPHERE_KEYS, get_region
from .reshape import tidy_raw_table
from .summaries import format_summary_report
from .utils.memory_utils import check_memory_threshold, log_memory_usage
from .validation import validate_data_quality

logger = logging.getLogger(__name__)

GLOBAL_COLUMNS = [
    'Identifier', 'ClimatePeriod', 'Decade', 'Year', 'Month', 'Anomaly', 'TemperatureCategory'
]
HEMISPHERE_COLUMNS = [
    'Hemisphere', 'ClimatePeriod', 'Decade', 'Year', 'Month', 'Anomaly', 'TemperatureCategory',
    'Season'
]


def process_region(raw: pd.DataFrame, region_key: str, first_year: int) -> pd.DataFrame:
    """
    Reshape and classify one region's raw table.

    Args:
        raw: Raw year-by-month table
        region_key: Region identifier (GLB, NH, SH)
        first_year: Records from earlier years are dropped

    Returns:
        Long-format table with Identifier, Year, Month, Anomaly, Decade,
        ClimatePeriod and TemperatureCategory

    Raises:
        PipelineError: If the table cannot be reshaped or classified
    """
    region = get_region(region_key)

    try:
        records = tidy_raw_table(raw, region.name)
    except SchemaMismatchError as e:
        raise PipelineError(region_key, 'reshape', e) from e

    try:
        classified = classify_records(records, first_year)
    except (TypeError, ValueError) as e:
        raise PipelineError(region_key, 'classify', e) from e

    unassigned_periods = int(classified['ClimatePeriod'].isna().sum())
    unassigned_categories = int(classified['TemperatureCategory'].isna().sum())
    if unassigned_periods:
        logger.warning(f"{region.name}: {unassigned_periods} records after the last climate period")
    if unassigned_categories:
        logger.warning(f"{region.name}: {unassigned_categories} records above the top temperature category")

    logger.info(f"Processed {region.name}: {len(classified)} records from {classified['Year'].min()}")
    return classified


def build_global_table(records: pd.DataFrame) -> pd.DataFrame:
    """Select and order the Global table columns."""
    global_table = records.copy()
    global_table['Identifier'] = get_region(GLOBAL_KEY).name
    return global_table[GLOBAL_COLUMNS].reset_index(drop=True)


def build_hemisphere_table(northern: pd.DataFrame, southern: pd.DataFrame) -> pd.DataFrame:
    """
    Concatenate Northern then Southern records and add seasons.

    Rows are neither deduplicated nor re-sorted; each keeps its own Year,
    Month and hemisphere.

    Args:
        northern: Classified Northern Hemisphere records
        southern: Classified Southern Hemisphere records

    Returns:
        Hemisphere table with a Season column
    """
    combined = pd.concat([northern, southern], ignore_index=True)
    combined = combined.rename(columns={'Identifier': 'Hemisphere'})

    unknown = set(combined['Hemisphere'].unique()) - set(HEMISPHERES)
    if unknown:
        raise PipelineError('/'.join(HEMISPHERE_KEYS), 'combine', f"unexpected identifiers {sorted(unknown)}")

    combined['Hemisphere'] = combined['Hemisphere'].astype(HEMISPHERE_DTYPE)
    combined['Season'] = assign_seasons(combined['Hemisphere'], combined['Month'])
    return combined[HEMISPHERE_COLUMNS]


class AnomalyDataProcessor:
    """
    Main anomaly data processing orchestrator.

    Coordinates retrieval of the source tables, the per-region reshape and
    classification tasks, the join into output tables, and output writing.
    """

    def __init__(self, config: Dict[str, Any], file_handler: Optional[GistempFileHandler] = None):
        """
        Initialize the processor with configuration.

        Args:
            config: Configuration dictionary
            file_handler: Source table handler; built from config when omitted
        """
        self.config = config
        self.file_handler = file_handler or GistempFileHandler(config)
        self.global_table = None
        self.hemisphere_table = None
        self.saved_files = []

    @property
    def region_keys(self) -> List[str]:
        return list(self.config['regions'])

    def setup(self) -> bool:
        """
        Validate configuration before any work is done.

        Returns:
            True if setup successful, False otherwise
        """
        if not validate_configuration(self.config):
            logger.error("Configuration validation failed")
            return False

        check_memory_threshold()
        log_memory_usage("after setup")
        return True

    def load_raw_tables(self) -> Dict[str, pd.DataFrame]:
        """
        Fetch and check the raw table of every configured region.

        Returns:
            Dictionary of raw tables by region key

        Raises:
            PipelineError: If any region cannot be fetched or fails quality checks
        """
        raw_tables = {}

        for region_key in tqdm(self.region_keys, desc="Fetching regions", unit="region"):
            try:
                raw = self.file_handler.fetch_region(region_key)
            except (RetrievalError, SchemaMismatchError) as e:
                raise PipelineError(region_key, 'fetch', e) from e

            quality = validate_data_quality(raw, region_key)
            if not quality['valid']:
                raise PipelineError(region_key, 'validate', '; '.join(quality['errors']))

            raw_tables[region_key] = raw

        log_memory_usage("after loading raw tables", raw_tables)
        return raw_tables

    def create_region_tasks(self, raw_tables: Mapping[str, pd.DataFrame]) -> List[Tuple[str, Any]]:
        """
        Create one lazy reshape-and-classify task per region.

        Raises:
            PipelineError: If a configured region has no raw table
        """
        tasks = []
        for region_key in self.region_keys:
            if region_key not in raw_tables:
                raise PipelineError(region_key, 'fetch', "no raw table supplied")
            task = dask.delayed(process_region)(
                raw_tables[region_key], region_key, self.config['first_year']
            )
            tasks.append((region_key, task))

        logger.info(f"Created {len(tasks)} region tasks")
        return tasks

    def build_tables(self, raw_tables: Mapping[str, pd.DataFrame]
                     ) -> Tuple[Optional[pd.DataFrame], Optional[pd.DataFrame]]:
        """
        Run the region tasks and join their results.

        Args:
            raw_tables: Raw tables by region key

        Returns:
            Tuple of (global_table, hemisphere_table); either is None when its
            regions are not configured
        """
        tasks = self.create_region_tasks(raw_tables)
        dask_config = configure_dask_resources(self.config, len(tasks))
        results = compute_tasks(tasks, dask_config,
                                show_progress=logger.isEnabledFor(logging.DEBUG))

        global_table = None
        if GLOBAL_KEY in results:
            global_table = build_global_table(results[GLOBAL_KEY])

        hemisphere_table = None
        if all(key in results for key in HEMISPHERE_KEYS):
            hemisphere_table = build_hemisphere_table(*(results[key] for key in HEMISPHERE_KEYS))

        self.global_table = global_table
        self.hemisphere_table = hemisphere_table
        log_memory_usage("after building tables", [global_table, hemisphere_table])
        return global_table, hemisphere_table

    def save_results(self) -> List[str]:
        """Write output tables, and plots when configured."""
        saved_files = save_tables(self.global_table, self.hemisphere_table, self.config)

        if self.config.get('make_plots'):
            from .plotting import create_all_plots
            saved_files.extend(create_all_plots(
                self.global_table, self.hemisphere_table, self.config['output_dir']
            ))

        self.saved_files = saved_files
        return saved_files

    def run(self) -> bool:
        """
        Run the complete processing pipeline.

        Returns:
            True if processing successful, False otherwise
        """
        start_time = datetime.now()
        logger.info(f"Starting anomaly processing at {start_time}")

        try:
            if not self.setup():
                return False

            raw_tables = self.load_raw_tables()
            self.build_tables(raw_tables)
            saved_files = self.save_results()

            if self.config.get('print_summary'):
                logger.info("\n" + format_summary_report(self.global_table, self.hemisphere_table))

            runtime = datetime.now() - start_time
            logger.info("Processing complete!")
            logger.info(f"Total runtime: {runtime}")
            logger.info(f"Saved {len(saved_files)} output files:")
            for file_path in saved_files:
                logger.info(f"  {file_path}")

            return True

        except PipelineError as e:
            logger.error(f"Processing failed for region {e.region} during {e.stage}: {e.cause}")
            return False
