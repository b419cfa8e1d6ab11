"""
Unit tests for report formatting, merging and commit
"""

import pytest
import os

from linecounter.common.records import AggregateResult
from linecounter.common.report import (commit_report, format_report_line, is_committed,
                                       merge_partitions, parse_report_line, read_report,
                                       write_report)


class TestReportLines:

    def test_format_quotes_filename(self):
        assert format_report_line(AggregateResult('x.py', 42)) == '"x.py"\t42\n'

    def test_format_keeps_whitespace(self):
        assert format_report_line(AggregateResult('my notes.txt', 3)) == '"my notes.txt"\t3\n'

    def test_parse_line(self):
        assert parse_report_line('"x.py"\t42\n') == AggregateResult('x.py', 42)

    def test_parse_filename_with_tab_and_quote(self):
        line = format_report_line(AggregateResult('odd\t"name', 7))

        assert parse_report_line(line) == AggregateResult('odd\t"name', 7)

    @pytest.mark.skipif(os.name != 'posix', reason='needs bytes filenames')
    def test_undecodable_filename_bytes_survive(self, temp_dir):
        path = os.path.join(temp_dir, 'part-r-00000')
        key = os.fsdecode(b'caf\xe9.txt')

        write_report([AggregateResult(key, 1)], path)

        with open(path, 'rb') as f:
            assert f.read() == b'"caf\xe9.txt"\t1\n'
        assert read_report(path) == [AggregateResult(key, 1)]

    @pytest.mark.parametrize('line', ['x.py\t42', '"x.py" 42', '"x.py"\tmany', ''])
    def test_parse_rejects_malformed(self, line):
        with pytest.raises(ValueError):
            parse_report_line(line)


class TestMergePartitions:

    def test_merges_in_key_order(self, temp_dir):
        part0 = os.path.join(temp_dir, 'part-r-00000')
        part1 = os.path.join(temp_dir, 'part-r-00001')
        write_report([AggregateResult('a', 1), AggregateResult('d', 4)], part0)
        write_report([AggregateResult('b', 2), AggregateResult('c', 3)], part1)
        merged = os.path.join(temp_dir, 'merged')

        written = merge_partitions([part1, part0], merged)

        assert written == 4
        assert [r.key for r in read_report(merged)] == ['a', 'b', 'c', 'd']

    def test_empty_partitions(self, temp_dir):
        part0 = os.path.join(temp_dir, 'part-r-00000')
        write_report([], part0)
        merged = os.path.join(temp_dir, 'merged')

        assert merge_partitions([part0], merged) == 0
        assert os.path.getsize(merged) == 0


class TestCommitReport:

    def test_commit_moves_report_and_marks_success(self, temp_dir):
        output_dir = os.path.join(temp_dir, 'out')
        os.makedirs(output_dir)
        temp_report = os.path.join(temp_dir, 'report.tmp')
        write_report([AggregateResult('x.py', 42)], temp_report)

        assert not is_committed(output_dir)
        final_path = commit_report(temp_report, output_dir)

        assert final_path == os.path.join(output_dir, 'part-r-00000')
        assert not os.path.exists(temp_report)
        assert is_committed(output_dir)
