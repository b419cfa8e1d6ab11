"""
Line count job.
Counts the number of lines in each input file, keyed by file name.
"""

from linecounter.common.records import AggregateResult, Emission, InputRecord


def _sum_counts(values) -> int:
    return sum(values)


def map_function(record: InputRecord) -> Emission:
    """
    Map function: emit (filename, 1) for the line.

    Args:
        record: One line of one input file

    Returns:
        Emission keyed by the file the line came from
    """
    return Emission(key=record.source_file_id, value=1)


def combiner_function(key: str, values) -> Emission:
    """
    Combiner function: pre-aggregate counts locally.

    Args:
        key: File name
        values: Counts seen so far by one map task (ones, or earlier partial sums)

    Returns:
        Emission with the partial sum, same shape as mapper output
    """
    return Emission(key=key, value=_sum_counts(values))


def reduce_function(key: str, values) -> AggregateResult:
    """
    Reduce function: total line count for a file.

    Args:
        key: File name
        values: Every count emitted for this file across all map tasks

    Returns:
        AggregateResult for the file
    """
    return AggregateResult(key=key, total_lines=_sum_counts(values))
