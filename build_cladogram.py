#!/usr/bin/env python
"""
Cladogram Tool - Main Script

Builds a cladogram of independent origins of multicellularity from the Open
Tree of Life (OpenToL). This script is the command-line interface to the
cladogram pipeline.
"""

import os
import sys
import argparse
import logging
import time

from cladogram.matching import MIN_SCORE, format_match_table
from cladogram.pipeline import CladogramPipeline
from cladogram.taxa import MULTICELLULAR_TAXA

__version__ = "0.1.0"


# Set up logging
def setup_logging(log_level, log_file=None):
    """Configure logging system based on specified log level and optional log file."""
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    # Basic configuration for console logging
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Add file handler if log_file is specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler.setFormatter(formatter)
        logging.getLogger().addHandler(file_handler)

        logging.info(f"Logging to file: {log_file}")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Build a cladogram of multicellular lineages from the Open Tree of Life",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--output-dir", "-o",
        default=os.path.join(os.getcwd(), "tree_output"),
        help="Directory for figures and tree files"
    )

    parser.add_argument(
        "--prefix", "-p",
        default="multicellular_lineages",
        help="File name prefix of all outputs"
    )

    parser.add_argument(
        "--min-score",
        type=float,
        default=MIN_SCORE,
        help="Minimum TNRS match score to keep a taxon"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for polytomy resolution (unseeded runs are not reproducible)"
    )

    parser.add_argument(
        "--context",
        default=None,
        help="TNRS context name to limit the name search scope"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=60,
        help="Timeout in seconds for each OpenToL request"
    )

    parser.add_argument(
        "--relabel",
        action="store_true",
        help="Rename proxy tips to the taxa they stand in for"
    )

    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        default="info",
        help="Set logging level"
    )

    parser.add_argument(
        "--log-file",
        help="Path to output log file"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main function."""
    args = parse_args(argv)

    setup_logging(args.log_level, args.log_file)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info("Starting cladogram generation")
    logger.info(f"Current working directory: {os.getcwd()}")

    # Create configuration dict from arguments
    config = {
        'opentol': {
            'timeout': args.timeout,
            'context': args.context,
        },
        'matching': {
            'min_score': args.min_score,
        },
        'resolver': {
            'seed': args.seed,
        },
        'output': {
            'output_dir': args.output_dir,
            'prefix': args.prefix,
            'relabel': args.relabel,
        },
    }

    pipeline = CladogramPipeline(config=config)

    try:
        outputs = pipeline.run(MULTICELLULAR_TAXA)
    except Exception as e:
        logger.error(f"Error during cladogram generation: {str(e)}")
        logger.error("Exception details:", exc_info=True)
        return 1
    finally:
        if pipeline.records is not None:
            print("Match results:")
            print(format_match_table(pipeline.records))

    if pipeline.excluded_table:
        print("\nWarning: The following taxa were excluded:")
        print(pipeline.excluded_table)

    print("\nFiles have been saved to:")
    for name, path in outputs.items():
        print(f"{name}: {path}")

    print()
    print(pipeline.report())

    elapsed_time = time.time() - start_time
    logger.info(f"Cladogram generation completed in {elapsed_time:.2f} seconds")
    return 0


if __name__ == "__main__":
    sys.exit(main())
