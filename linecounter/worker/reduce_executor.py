"""
Reduce Task Executor
Executes reduce tasks by reading intermediate data, grouping by key,
applying the reduce function, and writing a key-sorted partition file
"""

import logging
import os
import time
from collections import defaultdict
from typing import List

from linecounter.common.report import partition_file_name, write_report
from linecounter.coordinator.shuffle import GroupByKey, group_by_key, read_intermediate
from linecounter.worker.function_loader import FunctionLoader

logger = logging.getLogger(__name__)


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, partition_id: int, intermediate_files: List[str],
                 job_module: str, output_dir: str, grouper: GroupByKey = group_by_key):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            partition_id: Partition ID this reduce task is responsible for
            intermediate_files: Intermediate files holding this partition's data
            job_module: Job module name or file with the reduce function
            output_dir: Directory the partition file is written to
            grouper: Group-by-key implementation; must yield keys in order
        """
        self.task_id = task_id
        self.partition_id = partition_id
        self.intermediate_files = intermediate_files
        self.job_module = job_module
        self.output_dir = output_dir
        self.grouper = grouper
        self.loader = FunctionLoader(job_module)
        self.counters = defaultdict(int)

    @property
    def output_file(self) -> str:
        return os.path.join(self.output_dir, partition_file_name(self.partition_id))

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'output_file' and 'counters' fields
        """
        start_time = time.time()

        try:
            reduce_func = self.loader.get_reduce_function()

            logger.info(f"Reduce task {self.task_id}: Reading {len(self.intermediate_files)} "
                        f"intermediate file(s) for partition {self.partition_id}")
            grouped = self.grouper(read_intermediate(self.intermediate_files))
            logger.info(f"Reduce task {self.task_id}: Grouped {len(grouped)} unique keys")

            results = []
            for key, values in grouped:
                self.counters['reduce_input_groups'] += 1
                self.counters['reduce_input_records'] += len(values)
                results.append(reduce_func(key, values))

            os.makedirs(self.output_dir, exist_ok=True)
            self.counters['reduce_output_records'] = write_report(results, self.output_file)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Reduce task {self.task_id}: Wrote {len(results)} results "
                        f"to {self.output_file} in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'output_file': self.output_file,
                'counters': dict(self.counters),
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Reduce task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'output_file': '',
                'counters': dict(self.counters),
            }
