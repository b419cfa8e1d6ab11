"""
Unit tests for ReduceExecutor and the shuffle helpers it uses
"""

import pytest
import os
import json
from unittest.mock import Mock, patch

from linecounter.common.errors import ShuffleError
from linecounter.common.records import AggregateResult, Emission
from linecounter.common.report import read_report
from linecounter.coordinator.shuffle import group_by_key, read_intermediate
from linecounter.worker.reduce_executor import ReduceExecutor


def _write_pairs(path, pairs):
    with open(path, 'w') as f:
        for key, value in pairs:
            f.write(json.dumps({'key': key, 'value': value}) + '\n')
    return path


@pytest.fixture
def intermediate_files(temp_dir):
    intermediate_dir = os.path.join(temp_dir, 'intermediate')
    os.makedirs(intermediate_dir)
    file1 = _write_pairs(os.path.join(intermediate_dir, 'map-0-reduce-0.txt'),
                         [('b.py', 2), ('a.py', 1), ('b.py', 1)])
    file2 = _write_pairs(os.path.join(intermediate_dir, 'map-1-reduce-0.txt'),
                         [('a.py', 4), ('c.py', 1)])
    return [file1, file2]


class TestShuffleGrouping:
    """Tests for key grouping functionality"""

    def test_groups_values_by_key_in_sorted_order(self):
        emissions = [Emission('b', 1), Emission('a', 2), Emission('b', 3)]

        assert group_by_key(emissions) == [('a', [2]), ('b', [1, 3])]

    def test_sorts_by_code_point(self):
        emissions = [Emission('b.py', 1), Emission('B.py', 1), Emission('ä.py', 1)]

        assert [key for key, _ in group_by_key(emissions)] == ['B.py', 'b.py', 'ä.py']

    def test_empty_input(self):
        assert group_by_key([]) == []

    def test_reads_all_files(self, intermediate_files):
        emissions = list(read_intermediate(intermediate_files))

        assert len(emissions) == 5
        assert Emission('c.py', 1) in emissions

    def test_missing_file_raises(self, temp_dir):
        with pytest.raises(ShuffleError, match="not found"):
            list(read_intermediate([os.path.join(temp_dir, 'missing.txt')]))

    def test_malformed_line_raises(self, temp_dir):
        path = os.path.join(temp_dir, 'bad.txt')
        with open(path, 'w') as f:
            f.write('{"key": "a.py", "value": 1}\nnot json\n')

        with pytest.raises(ShuffleError, match="bad.txt:2"):
            list(read_intermediate([path]))


class TestReduceExecutor:
    """Tests for reduce execution"""

    def test_sums_and_writes_sorted_partition(self, intermediate_files, temp_dir):
        executor = ReduceExecutor(
            task_id=0,
            partition_id=0,
            intermediate_files=intermediate_files,
            job_module='linecounter.jobs.line_count',
            output_dir=os.path.join(temp_dir, 'partitions'),
        )

        result = executor.execute()

        assert result['success'] is True
        assert result['output_file'].endswith('part-r-00000')
        assert read_report(result['output_file']) == [
            AggregateResult('a.py', 5),
            AggregateResult('b.py', 3),
            AggregateResult('c.py', 1),
        ]
        assert result['counters']['reduce_input_groups'] == 3
        assert result['counters']['reduce_input_records'] == 5
        assert result['counters']['reduce_output_records'] == 3

    def test_report_line_format(self, intermediate_files, temp_dir):
        executor = ReduceExecutor(0, 0, intermediate_files, 'linecounter.jobs.line_count',
                                  os.path.join(temp_dir, 'partitions'))

        result = executor.execute()

        with open(result['output_file']) as f:
            assert f.read() == '"a.py"\t5\n"b.py"\t3\n"c.py"\t1\n'

    def test_no_intermediate_files_writes_empty_partition(self, temp_dir):
        executor = ReduceExecutor(0, 2, [], 'linecounter.jobs.line_count',
                                  os.path.join(temp_dir, 'partitions'))

        result = executor.execute()

        assert result['success'] is True
        assert result['output_file'].endswith('part-r-00002')
        assert os.path.getsize(result['output_file']) == 0

    def test_uses_injected_grouper(self, temp_dir):
        grouper = Mock(return_value=[('x.py', [40, 2])])
        executor = ReduceExecutor(0, 0, [], 'linecounter.jobs.line_count',
                                  os.path.join(temp_dir, 'partitions'), grouper=grouper)

        result = executor.execute()

        grouper.assert_called_once()
        assert read_report(result['output_file']) == [AggregateResult('x.py', 42)]

    def test_reduce_called_once_per_key(self, intermediate_files, temp_dir):
        mock_reduce = Mock(side_effect=lambda key, values: AggregateResult(key, sum(values)))
        mock_loader = Mock()
        mock_loader.get_reduce_function.return_value = mock_reduce

        with patch('linecounter.worker.reduce_executor.FunctionLoader', return_value=mock_loader):
            executor = ReduceExecutor(0, 0, intermediate_files, 'ignored',
                                      os.path.join(temp_dir, 'partitions'))
            executor.execute()

        assert [c.args[0] for c in mock_reduce.call_args_list] == ['a.py', 'b.py', 'c.py']

    def test_shuffle_failure_returns_error_result(self, temp_dir):
        executor = ReduceExecutor(0, 0, [os.path.join(temp_dir, 'missing.txt')],
                                  'linecounter.jobs.line_count',
                                  os.path.join(temp_dir, 'partitions'))

        result = executor.execute()

        assert result['success'] is False
        assert 'not found' in result['error_message']
