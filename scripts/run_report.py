#!/usr/bin/env python
"""
Retail Report Runner

Loads the three retail tables, runs the window queries and prints or saves
each result.
Usage:
    From files:      python scripts/run_report.py --input data/raw
    Synthetic data:  python scripts/run_report.py --generate 5000
    One query:       python scripts/run_report.py --generate 5000 --query customer_spending_rank
    Save results:    python scripts/run_report.py --input data/raw --output data/reports
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import polars as pl
import structlog

from retail_analytics.analytics import QUERIES, AnalyticsEngine
from retail_analytics.config import get_settings
from retail_analytics.config.logging import configure_logging
from retail_analytics.data import SampleDataGenerator
from retail_analytics.exceptions import DataValidationError
from retail_analytics.ingestion import load_snapshot, load_snapshot_from_files

logger = structlog.get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Retail window analytics reports")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--input", help="Directory with customers/products/transactions files")
    source.add_argument("--generate", type=int, metavar="N", help="Use N synthetic transactions")
    parser.add_argument("--format", choices=["csv", "parquet"], default=None, help="Input/output file format")
    parser.add_argument("--query", choices=["all", *QUERIES], default="all", help="Query to run (default: all)")
    parser.add_argument(
        "--output",
        nargs="?",
        const=get_settings().data.output_path,
        help="Write each result to this directory (default: DATA_OUTPUT_PATH) instead of printing",
    )
    parser.add_argument("--parallel", action="store_true", help="Run queries on worker threads")
    parser.add_argument("--seed", type=int, default=42, help="Seed for --generate")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.generate is not None:
            tables = SampleDataGenerator(seed=args.seed).generate_all(n_transactions=args.generate)
            snapshot = load_snapshot(**{f"{name}_df": df for name, df in tables.items()}, source="generated")
        else:
            snapshot = load_snapshot_from_files(args.input, args.format)
        engine = AnalyticsEngine(snapshot)
    except DataValidationError as e:
        logger.error("Input rejected", **e.to_dict())
        return 1

    names = list(QUERIES) if args.query == "all" else [args.query]
    frames = engine.frames(engine.run_all(names, parallel=args.parallel))

    if args.output:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        for name, df in frames.items():
            path = output_dir / f"{name}.{args.format or 'csv'}"
            if args.format == "parquet":
                df.write_parquet(path)
            else:
                df.write_csv(path)
            logger.info("Report written", query=name, rows=len(df), file=str(path))
    else:
        with pl.Config(tbl_rows=50, tbl_cols=-1):
            for name, df in frames.items():
                print(f"\n== {name} ==")
                print(df)

    return 0


if __name__ == "__main__":
    sys.exit(main())
