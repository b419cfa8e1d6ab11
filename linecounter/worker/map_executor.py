"""
Map Task Executor
Executes map tasks by reading an input split, applying the map function,
combining locally, partitioning output, and writing intermediate files
"""

import json
import logging
import os
import time
import zlib
from collections import defaultdict
from typing import Dict, List

from linecounter.common.records import Emission, InputSplit
from linecounter.worker.function_loader import FunctionLoader
from linecounter.worker.splitter import read_records

logger = logging.getLogger(__name__)


def partition_for(key: str, num_reduce_tasks: int) -> int:
    """Stable partition of a key; identical across processes and runs"""
    return zlib.crc32(os.fsencode(key)) % num_reduce_tasks


def intermediate_file_name(task_id: int, partition: int) -> str:
    return f"map-{task_id}-reduce-{partition}.txt"


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, split: InputSplit, num_reduce_tasks: int,
                 job_module: str, use_combiner: bool, intermediate_dir: str,
                 spill_threshold: int = 10000, include_empty_files: bool = False):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            split: Byte range of one input file to read
            num_reduce_tasks: Number of reduce tasks (for partitioning)
            job_module: Job module name or file with the map/combiner functions
            use_combiner: Whether to apply the combiner function
            intermediate_dir: Directory owned by the job for intermediate files
            spill_threshold: Buffered emissions that trigger a combiner pass
            include_empty_files: Emit a zero count for the file so it is
                reported even if it has no lines
        """
        self.task_id = task_id
        self.split = split
        self.num_reduce_tasks = num_reduce_tasks
        self.job_module = job_module
        self.use_combiner = use_combiner
        self.intermediate_dir = intermediate_dir
        self.spill_threshold = spill_threshold
        self.include_empty_files = include_empty_files
        self.loader = FunctionLoader(job_module)
        self.counters = defaultdict(int)

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'intermediate_files' and 'counters' fields
        """
        start_time = time.time()

        try:
            logger.info(f"Map task {self.task_id}: Reading {self.split.path} "
                        f"[{self.split.start}, {self.split.end})")
            emissions = self._map_split()

            logger.info(f"Map task {self.task_id}: {self.counters['map_input_records']} records "
                        f"-> {len(emissions)} pairs after combiner")

            intermediate_files = self._write_intermediate_files(self._partition(emissions))

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Map task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'intermediate_files': intermediate_files,
                'counters': dict(self.counters),
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Map task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'intermediate_files': [],
                'counters': dict(self.counters),
            }

    def _map_split(self) -> List[Emission]:
        """
        Apply the map function to every record in the split

        When the combiner is enabled the buffer is combined every time it
        reaches spill_threshold, and the spilled output is combined once more
        at the end.

        Returns:
            Emissions ready for partitioning
        """
        map_func = self.loader.get_map_function()
        combiner_func = self.loader.get_combiner_function() if self.use_combiner else None

        buffer: List[Emission] = []
        spilled: List[Emission] = []

        if self.include_empty_files and self.split.start == 0:
            buffer.append(Emission(key=self.split.file_name, value=0))

        for record in read_records(self.split):
            self.counters['map_input_records'] += 1
            buffer.append(map_func(record))
            self.counters['map_output_records'] += 1

            if combiner_func and len(buffer) >= self.spill_threshold:
                spilled.extend(self._apply_combiner(combiner_func, buffer))
                buffer = []

        if not combiner_func:
            return buffer

        if not spilled:
            return self._apply_combiner(combiner_func, buffer)
        return self._apply_combiner(combiner_func, spilled + buffer)

    def _apply_combiner(self, combiner_func, emissions: List[Emission]) -> List[Emission]:
        """
        Apply combiner function to local map output

        Args:
            combiner_func: Callable (key, values) -> Emission
            emissions: Emissions produced by this task so far

        Returns:
            One emission per distinct key
        """
        key_groups: Dict[str, List[int]] = defaultdict(list)
        for emission in emissions:
            key_groups[emission.key].append(emission.value)

        combined = [combiner_func(key, values) for key, values in key_groups.items()]

        self.counters['combine_input_records'] += len(emissions)
        self.counters['combine_output_records'] += len(combined)
        return combined

    def _partition(self, emissions: List[Emission]) -> Dict[int, List[Emission]]:
        partitions: Dict[int, List[Emission]] = defaultdict(list)
        for emission in emissions:
            partitions[partition_for(emission.key, self.num_reduce_tasks)].append(emission)
        return partitions

    def _write_intermediate_files(self, partitions: Dict[int, List[Emission]]) -> List[str]:
        """
        Write intermediate key-value pairs to disk in JSON format

        Args:
            partitions: Dictionary mapping partition_id to emissions

        Returns:
            Paths of the files written, one per non-empty partition
        """
        os.makedirs(self.intermediate_dir, exist_ok=True)

        written = []
        for partition in sorted(partitions):
            filename = os.path.join(self.intermediate_dir,
                                    intermediate_file_name(self.task_id, partition))

            with open(filename, 'w', encoding='utf-8') as f:
                for emission in partitions[partition]:
                    f.write(json.dumps(emission.to_dict()) + '\n')

            self.counters['intermediate_bytes'] += os.path.getsize(filename)
            written.append(filename)

        return written
