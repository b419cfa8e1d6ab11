"""
Report formatting, parsing and the single-file merge of reduce partitions
"""

import heapq
import logging
import os
from typing import Iterable, Iterator, List

from linecounter.common.records import AggregateResult

logger = logging.getLogger(__name__)

REPORT_FILE_NAME = 'part-r-00000'
SUCCESS_MARKER = '_SUCCESS'
TEMPORARY_DIR = '_temporary'


def partition_file_name(partition_id: int) -> str:
    """Name of the file a reduce task writes for its partition"""
    return f"part-r-{partition_id:05d}"


def format_report_line(result: AggregateResult) -> str:
    return result.format() + '\n'


def parse_report_line(line: str) -> AggregateResult:
    """
    Parse one report line back into an AggregateResult

    The count is everything after the last tab, so filenames that contain
    tabs or quotes still round-trip.

    Raises:
        ValueError: If the line is not '"<filename>"<TAB><count>'
    """
    line = line.rstrip('\n')
    quoted_key, sep, count = line.rpartition('\t')
    if not sep or len(quoted_key) < 2 or quoted_key[0] != '"' or quoted_key[-1] != '"':
        raise ValueError(f"Malformed report line: {line!r}")
    return AggregateResult(key=quoted_key[1:-1], total_lines=int(count))


def write_report(results: Iterable[AggregateResult], path: str) -> int:
    """
    Write results to path, one line each, in the order given

    Returns:
        Number of results written
    """
    written = 0
    with open(path, 'w', encoding='utf-8', errors='surrogateescape', newline='\n') as f:
        for result in results:
            f.write(format_report_line(result))
            written += 1
    return written


def read_report(path: str) -> List[AggregateResult]:
    """Read a report (or a partition file) into a list of results"""
    with open(path, 'r', encoding='utf-8', errors='surrogateescape', newline='\n') as f:
        return [parse_report_line(line) for line in f if line.strip()]


def _iter_partition(path: str) -> Iterator[AggregateResult]:
    with open(path, 'r', encoding='utf-8', errors='surrogateescape', newline='\n') as f:
        for line in f:
            if line.strip():
                yield parse_report_line(line)


def merge_partitions(partition_files: List[str], dest_path: str) -> int:
    """
    Merge key-sorted partition files into one key-sorted report

    Each reduce task owns a disjoint set of keys and writes them in ascending
    order, so a k-way merge by key yields the same report a single reducer
    would have written.

    Returns:
        Number of results in the merged report
    """
    streams = [_iter_partition(path) for path in sorted(partition_files)]
    merged = heapq.merge(*streams, key=lambda result: result.key)
    written = write_report(merged, dest_path)
    logger.info(f"Merged {len(partition_files)} partition(s) into {dest_path} ({written} entries)")
    return written


def commit_report(temp_report: str, output_dir: str) -> str:
    """
    Move the finished report into place and mark the output as complete

    Returns:
        Final report path
    """
    final_path = os.path.join(output_dir, REPORT_FILE_NAME)
    os.replace(temp_report, final_path)
    with open(os.path.join(output_dir, SUCCESS_MARKER), 'w'):
        pass
    return final_path


def is_committed(output_dir: str) -> bool:
    """True when output_dir holds a report from a successful run"""
    return (os.path.isfile(os.path.join(output_dir, SUCCESS_MARKER))
            and os.path.isfile(os.path.join(output_dir, REPORT_FILE_NAME)))
