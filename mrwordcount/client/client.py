#!/usr/bin/env python3
"""
Word count CLI
Runs the word count job over an input file or directory and writes
word<TAB>count lines into an output directory
"""

import argparse
import logging
import sys

from mrwordcount.common.config import EngineConfig
from mrwordcount.common.logging_config import configure_logging
from mrwordcount.coordinator.job_manager import validate_job_id
from mrwordcount.coordinator.runner import LocalJobRunner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mrwordcount',
        description='Count word frequencies with MapReduce',
        epilog='Example: %(prog)s --num-reduce-tasks 4 /data/books /data/counts'
    )
    parser.add_argument('input', help='Input file or directory')
    parser.add_argument('output', help='Output directory (must not exist)')
    parser.add_argument('--num-map-tasks', type=int, help='Number of map tasks (default: 4)')
    parser.add_argument('--num-reduce-tasks', type=int, help='Number of reduce tasks (default: 2)')
    parser.add_argument('--max-workers', type=int, help='Worker threads per phase (default: 4)')
    parser.add_argument('--use-combiner', action='store_true', default=None,
                        help='Enable combiner optimization')
    parser.add_argument('--job-file', help='Python file or module with map/reduce functions '
                                           '(default: built-in word count)')
    parser.add_argument('--job-id', help='Custom job ID (auto-generated if not provided)')
    parser.add_argument('--metrics-file', help='Write job metrics as JSON to this path')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')
    return parser


def main(argv=None) -> int:
    """
    Main CLI entry point

    Returns:
        0 when the job succeeds, 1 when it fails. Wrong usage exits
        with status 2 from argparse after printing the usage message.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = EngineConfig.from_env().with_overrides(
            num_map_tasks=args.num_map_tasks,
            num_reduce_tasks=args.num_reduce_tasks,
            max_workers=args.max_workers,
            use_combiner=args.use_combiner,
            job_file=args.job_file,
            log_level=args.log_level,
        )
        if args.job_id is not None:
            validate_job_id(args.job_id)
        configure_logging(config.log_level)
    except ValueError as e:
        parser.error(str(e))

    logger.info("main")
    runner = LocalJobRunner(config)
    succeeded = runner.run(args.input, args.output, job_id=args.job_id)

    if args.metrics_file:
        metrics = runner.metrics.get_metrics(runner.last_job_id)
        if metrics:
            metrics.save_to_file(args.metrics_file)

    exit_code = 0 if succeeded else 1
    logger.info(f"result: {exit_code}")
    return exit_code


def cli():
    sys.exit(main())


if __name__ == '__main__':
    cli()
