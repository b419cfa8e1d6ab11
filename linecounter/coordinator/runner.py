"""
Job runner
Drives one line counting job through map, shuffle and reduce and commits the
single report file
"""

import logging
import os
import shutil
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional

from linecounter.common.config import JobConfig
from linecounter.common.errors import JobExecutionError, OutputExistsError
from linecounter.common.report import (REPORT_FILE_NAME, TEMPORARY_DIR, commit_report,
                                       merge_partitions)
from linecounter.coordinator.job_manager import Job, JobManager, MapTask, ReduceTask
from linecounter.coordinator.metrics import MetricsCollector
from linecounter.coordinator.shuffle import GroupByKey, group_by_key
from linecounter.worker.map_executor import MapExecutor
from linecounter.worker.reduce_executor import ReduceExecutor
from linecounter.worker.splitter import list_input_files, plan_splits

logger = logging.getLogger(__name__)


class JobRunner:
    """Runs line counting jobs in-process with a pool of map workers"""

    def __init__(self, config: Optional[JobConfig] = None,
                 job_manager: Optional[JobManager] = None,
                 metrics: Optional[MetricsCollector] = None,
                 grouper: GroupByKey = group_by_key):
        self.config = (config or JobConfig()).validate()
        self.job_manager = job_manager or JobManager()
        self.metrics = metrics or MetricsCollector()
        self.grouper = grouper

    def run(self, input_path: str, output_path: str, job_id: Optional[str] = None) -> bool:
        """
        Count lines per file under input_path and write the report to output_path

        Returns:
            True if the job completed and the report was committed
        """
        job_id = job_id or f"job_{uuid.uuid4().hex[:12]}"

        try:
            self._claim_output(output_path)
        except OutputExistsError as e:
            # Nothing was created, so nothing is cleaned up
            logger.error(f"Job {job_id} failed: {e}")
            return False

        work_dir = os.path.join(output_path, TEMPORARY_DIR, job_id)
        job = self.job_manager.create_job(job_id, input_path, output_path, self.config, work_dir)
        self.metrics.start_job(job_id, self.config.num_reduce_tasks, self.config.use_combiner)

        logger.info(f"Job {job_id} submitted: input={input_path} output={output_path}")
        report_path = None
        try:
            self._run_map_phase(job)
            partition_files = self._run_reduce_phase(job)
            report_path = self._assemble_report(job, partition_files)
            self.job_manager.mark_completed(job_id)
            logger.info(f"Job {job_id} completed successfully: {report_path}")
            return True

        except Exception as e:
            self.job_manager.mark_failed(job_id, str(e))
            logger.error(f"Job {job_id} failed: {e}")
            return False

        finally:
            self.metrics.end_job(job_id, report_path is not None, report_path)
            self.metrics.log_summary(job_id)
            self._cleanup(output_path)

    @staticmethod
    def _claim_output(output_path: str):
        try:
            os.makedirs(output_path)
        except FileExistsError:
            raise OutputExistsError(f"Output directory {output_path} already exists")

    def _run_map_phase(self, job: Job):
        files = list_input_files(job.input_path)
        splits = plan_splits(files, self.config.split_size_bytes)
        map_tasks = self.job_manager.generate_map_tasks(job, splits)
        self.metrics.start_map_phase(job.job_id, files, len(map_tasks))
        logger.info(f"Job {job.job_id} started MAP phase: {len(files)} file(s), "
                    f"{len(map_tasks)} map task(s)")

        with ThreadPoolExecutor(max_workers=self.config.map_workers) as pool:
            futures = {pool.submit(self._run_map_task, job, task): task for task in map_tasks}
            try:
                for future in as_completed(futures):
                    future.result()
            except JobExecutionError:
                for future in futures:
                    future.cancel()
                raise

        self.metrics.end_map_phase(job.job_id)

    def _run_map_task(self, job: Job, task: MapTask):
        self.job_manager.mark_map_task_running(job.job_id, task.task_id)
        executor = MapExecutor(
            task_id=task.task_id,
            split=task.split,
            num_reduce_tasks=self.config.num_reduce_tasks,
            job_module=self.config.job_module,
            use_combiner=self.config.use_combiner,
            intermediate_dir=job.intermediate_dir,
            spill_threshold=self.config.combiner_spill_threshold,
            include_empty_files=self.config.include_empty_files,
        )
        result = executor.execute()
        self.metrics.add_counters(job.job_id, result['counters'])

        if not result['success']:
            raise JobExecutionError(f"Map task {task.task_id} failed: {result['error_message']}")
        self.job_manager.mark_map_task_completed(job.job_id, task.task_id,
                                                 result['intermediate_files'])

    def _run_reduce_phase(self, job: Job) -> List[str]:
        # Raises unless every map task has completed
        reduce_tasks = self.job_manager.generate_reduce_tasks(job)
        self.metrics.start_reduce_phase(job.job_id)
        logger.info(f"Job {job.job_id} started REDUCE phase: {len(reduce_tasks)} reduce task(s)")

        return [self._run_reduce_task(job, task) for task in reduce_tasks]

    def _run_reduce_task(self, job: Job, task: ReduceTask) -> str:
        executor = ReduceExecutor(
            task_id=task.task_id,
            partition_id=task.partition_id,
            intermediate_files=task.intermediate_files,
            job_module=self.config.job_module,
            output_dir=job.partitions_dir,
            grouper=self.grouper,
        )
        result = executor.execute()
        self.metrics.add_counters(job.job_id, result['counters'])

        if not result['success']:
            raise JobExecutionError(f"Reduce task {task.task_id} failed: {result['error_message']}")
        self.job_manager.mark_reduce_task_completed(job.job_id, task.task_id, result['output_file'])
        return result['output_file']

    def _assemble_report(self, job: Job, partition_files: List[str]) -> str:
        if len(partition_files) == 1:
            temp_report = partition_files[0]
        else:
            temp_report = os.path.join(job.work_dir, REPORT_FILE_NAME)
            merge_partitions(partition_files, temp_report)
        return commit_report(temp_report, job.output_path)

    def _cleanup(self, output_path: str):
        """Remove temporary data; drop the output directory if nothing was committed"""
        shutil.rmtree(os.path.join(output_path, TEMPORARY_DIR), ignore_errors=True)
        if os.path.isdir(output_path) and not os.listdir(output_path):
            os.rmdir(output_path)
