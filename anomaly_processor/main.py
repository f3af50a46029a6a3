#!/usr/bin/env python3
"""
Anomaly Processor - Main Entry Point

Downloads the GISTEMP global and hemispheric temperature anomaly tables,
classifies every monthly record, and writes the Global and Hemisphere
tables.
"""

import argparse
import logging
import sys

from .config import VALID_OUTPUT_FORMATS, get_config_summary, load_configuration, override_config
from .data_processor import AnomalyDataProcessor
from .utils.diagnostics import run_system_diagnostics
from .utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Temperature Anomaly Processor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                    # Run with default config
  %(prog)s --diagnostics                     # Run system diagnostics
  %(prog)s --regions GLB                     # Global table only
  %(prog)s --output-format netcdf --plots    # NetCDF output plus charts
  %(prog)s --config /path/to/config.ini     # Use custom config file
        """
    )

    parser.add_argument('--diagnostics', action='store_true',
                        help='Run system diagnostics only')
    parser.add_argument('--config', type=str,
                        help='Path to configuration file')
    parser.add_argument('--regions', type=str,
                        help='Comma-separated list of regions (GLB, NH, SH)')
    parser.add_argument('--output-dir', type=str,
                        help='Override output directory')
    parser.add_argument('--output-format', type=str, choices=VALID_OUTPUT_FORMATS,
                        help='Override output format')
    parser.add_argument('--first-year', type=int,
                        help='Override first year kept in the output tables (not before 1900)')
    parser.add_argument('--no-cache', action='store_true',
                        help='Download source tables even when cached copies exist')
    parser.add_argument('--plots', action='store_true',
                        help='Also save charts of the output tables')
    parser.add_argument('--summary', action='store_true',
                        help='Log a summary report of the output tables')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for the anomaly processor."""
    args = parse_arguments(argv)

    try:
        config = load_configuration(args.config)
        config = override_config(config, args)

        setup_logging(config, verbose=args.verbose)

        logger.info("=== Anomaly Processor Starting ===")
        logger.info(f"Configuration loaded from: {config.get('_config_file', 'default')}")
        logger.debug(get_config_summary(config))

        if args.diagnostics:
            logger.info("Running system diagnostics...")
            run_system_diagnostics(config)
            return 0

        processor = AnomalyDataProcessor(config)

        if processor.run():
            logger.info("=== Processing completed successfully ===")
            return 0
        else:
            logger.error("=== Processing failed ===")
            return 1

    except KeyboardInterrupt:
        logger.info("Processing interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
