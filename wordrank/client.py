#!/usr/bin/env python3
"""
Ranking Client CLI
Reads a job description, ranks its files and writes the ranked lines
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List

from wordrank.config import (
    DEFAULT_LOG_LEVEL, DEFAULT_MAP_STRATEGY, LOG_FORMAT, MAP_STRATEGIES, RankConfig,
)
from wordrank.coordinator import Coordinator
from wordrank.errors import ConfigError, InputFileError, WordRankError
from wordrank.metrics import MetricsCollector
from wordrank.results import write_results

logger = logging.getLogger(__name__)


@dataclass
class JobDescription:
    """Parsed job file: fragment size followed by the files to rank"""
    fragment_size: int
    files: List[str]


def parse_job_file(path: str) -> JobDescription:
    """
    Parse a job description file

    The first line is the fragment size, the second the file count, then
    one file path per line.

    Raises:
        InputFileError: If the job file cannot be read
        ConfigError: If the content is malformed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            lines = [line.strip() for line in f]
    except OSError as e:
        raise InputFileError(f"Cannot read job file: {e}", file_name=path) from e

    if len(lines) < 2:
        raise ConfigError("Job file must contain a fragment size and a file count", file_name=path)

    try:
        fragment_size = int(lines[0])
        file_count = int(lines[1])
    except ValueError as e:
        raise ConfigError(f"Malformed job file header: {e}", file_name=path) from e

    if file_count < 0:
        raise ConfigError(f"File count must not be negative, got {file_count}", file_name=path)

    files = lines[2:2 + file_count]
    if len(files) < file_count or not all(files):
        raise ConfigError(f"Job file lists fewer than {file_count} files", file_name=path)

    return JobDescription(fragment_size=fragment_size, files=files)


def save_metrics(metrics: MetricsCollector, path: str):
    try:
        metrics.get_metrics().save_to_file(path)
    except OSError as e:
        raise InputFileError(f"Cannot write metrics: {e}", file_name=path) from e
    logger.info(f"Metrics saved to {path}")


def rank_files(args) -> int:
    """Run the pipeline for a parsed command line"""
    try:
        job = parse_job_file(args.job_file)
        config = RankConfig(
            fragment_size=job.fragment_size,
            workers=args.workers,
            map_strategy=args.map_strategy,
            log_level=args.log_level
        )
        metrics = MetricsCollector(config.map_strategy, config.workers)
        result_set = Coordinator(job.files, config, metrics).run()
        write_results(result_set, args.output)
        if args.metrics:
            save_metrics(metrics, args.metrics)
    except WordRankError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='wordrank',
        description='Rank text files by a word-length weighted score',
        epilog='Example: %(prog)s 4 job.txt ranks.txt --map-strategy scan'
    )
    parser.add_argument('workers', type=int, help='Number of worker threads')
    parser.add_argument('job_file', help='Job description: fragment size, file count, then file paths')
    parser.add_argument('output', help='Output file for the ranked lines')
    parser.add_argument('--map-strategy', choices=MAP_STRATEGIES, default=DEFAULT_MAP_STRATEGY,
                        help=f'Boundary correction strategy (default: {DEFAULT_MAP_STRATEGY})')
    parser.add_argument('--metrics', help='Write run metrics as JSON to this path')
    parser.add_argument('--log-level', default=DEFAULT_LOG_LEVEL,
                        help=f'Logging level (default: {DEFAULT_LOG_LEVEL})')
    return parser


def main(argv=None):
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format=LOG_FORMAT
    )

    return rank_files(args)


if __name__ == '__main__':
    sys.exit(main())
