#!/usr/bin/env python3
"""
Line Counter CLI
Counts the lines of every file under an input path and writes one report

Exit codes: 0 success, 1 job failure, -1 malformed invocation
"""

import argparse
import logging
import os
import sys
import uuid

from linecounter.common.config import JobConfig
from linecounter.common.errors import InvocationError
from linecounter.common.logging_setup import configure_logging
from linecounter.coordinator.runner import JobRunner

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = -1

USAGE = "Usage: linecounter [options] <input path> <output path>"


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports errors instead of exiting"""

    def error(self, message):
        raise InvocationError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='linecounter',
        usage=USAGE[len("Usage: "):],
        description="Count the lines of each input file with a map/combine/reduce job",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s staged/ results/run-42
  %(prog)s --no-combiner --num-reduce-tasks 4 'staged/*/' results/run-43
  %(prog)s --include-empty-files staged/ results/run-44
        """
    )
    parser.add_argument('paths', nargs='*', metavar='PATH',
                        help='Input path (file, directory or glob) and output directory')
    parser.add_argument('--job-id', help='Job identifier (default: generated)')
    parser.add_argument('--map-workers', type=int, help='Concurrent map tasks')
    parser.add_argument('--num-reduce-tasks', type=int,
                        help='Reduce partitions, merged into one report (default: 1)')
    parser.add_argument('--split-size', type=int, dest='split_size_bytes',
                        help='Maximum split size in bytes')
    parser.add_argument('--combiner', dest='use_combiner', action='store_true', default=None,
                        help='Enable the local combiner (default)')
    parser.add_argument('--no-combiner', dest='use_combiner', action='store_false', default=None,
                        help='Disable the local combiner')
    parser.add_argument('--spill-threshold', type=int, dest='combiner_spill_threshold',
                        help='Buffered map outputs per combiner pass')
    parser.add_argument('--include-empty-files', action='store_true', default=None,
                        help='Report files with zero lines as 0 instead of omitting them')
    parser.add_argument('--job-module', help='Job module name or .py file')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        type=str.upper, help='Logging level')
    parser.add_argument('--metrics-file', help='Write job metrics as JSON to this file')
    return parser


def _load_config(args) -> JobConfig:
    config = JobConfig.from_env().with_overrides(
        map_workers=args.map_workers,
        num_reduce_tasks=args.num_reduce_tasks,
        split_size_bytes=args.split_size_bytes,
        use_combiner=args.use_combiner,
        combiner_spill_threshold=args.combiner_spill_threshold,
        include_empty_files=args.include_empty_files,
        job_module=args.job_module,
        log_level=args.log_level,
    )
    return config.validate()


def _check_job_id(job_id):
    # The job id names a directory under the output's _temporary folder
    separators = [s for s in (os.sep, os.altsep, '/') if s]
    if any(s in job_id for s in separators) or job_id in ('.', '..'):
        raise InvocationError(f"invalid job id: {job_id!r}")


def run(argv) -> int:
    """
    Parse arguments and run one job

    Returns:
        Process exit code
    """
    try:
        args = build_parser().parse_intermixed_args(argv)
        if len(args.paths) != 2:
            raise InvocationError(f"expected 2 paths, got {len(args.paths)}")
        config = _load_config(args)
        if args.job_id is not None:
            _check_job_id(args.job_id)
    except InvocationError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE

    configure_logging(config.log_level)
    input_path, output_path = args.paths
    job_id = args.job_id or f"job_{uuid.uuid4().hex[:12]}"

    runner = JobRunner(config)
    success = runner.run(input_path, output_path, job_id=job_id)

    if args.metrics_file:
        metrics = runner.metrics.get_metrics(job_id)
        if metrics:
            try:
                metrics.save_to_file(args.metrics_file)
                logger.info(f"Metrics written to {args.metrics_file}")
            except OSError as e:
                logger.error(f"Could not write metrics to {args.metrics_file}: {e}")

    if success:
        print(f"✓ Job {job_id} completed: {output_path}")
        return EXIT_SUCCESS

    print(f"✗ Job {job_id} failed", file=sys.stderr)
    return EXIT_FAILURE


def main():
    sys.exit(run(sys.argv[1:]))


if __name__ == '__main__':
    main()
