"""
Job Manager
Handles job state, task generation and the map completion barrier
"""

import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from linecounter.common.config import JobConfig
from linecounter.common.records import InputSplit
from linecounter.worker.map_executor import intermediate_file_name


class JobStatus(Enum):
    """Status of a line counting job"""
    SUBMITTED = "submitted"
    MAPPING = "mapping"
    SHUFFLED = "shuffled"
    REDUCING = "reducing"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual map or reduce tasks"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


_TERMINAL = (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class MapTask:
    """Represents a single map task"""
    task_id: int
    split: InputSplit
    status: TaskStatus = TaskStatus.PENDING
    intermediate_files: List[str] = field(default_factory=list)


@dataclass
class ReduceTask:
    """Represents a single reduce task"""
    task_id: int
    partition_id: int
    intermediate_files: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    output_file: str = ''


@dataclass
class Job:
    """Represents a complete line counting job"""
    job_id: str
    input_path: str
    output_path: str
    config: JobConfig
    work_dir: str = ''
    status: JobStatus = JobStatus.SUBMITTED
    map_tasks: List[MapTask] = field(default_factory=list)
    reduce_tasks: List[ReduceTask] = field(default_factory=list)
    error_message: str = ''
    start_time: float = 0.0
    end_time: float = 0.0

    @property
    def intermediate_dir(self) -> str:
        return os.path.join(self.work_dir, 'intermediate')

    @property
    def partitions_dir(self) -> str:
        return os.path.join(self.work_dir, 'partitions')


class JobManager:
    """Manages line counting jobs and their lifecycle"""

    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.lock = threading.Lock()

    def create_job(self, job_id: str, input_path: str, output_path: str,
                   config: JobConfig, work_dir: str) -> Job:
        """Register a new job in SUBMITTED state"""
        with self.lock:
            job = Job(
                job_id=job_id,
                input_path=input_path,
                output_path=output_path,
                config=config,
                work_dir=work_dir,
                start_time=time.time()
            )
            self.jobs[job_id] = job
            return job

    def get_job(self, job_id: str) -> Optional[Job]:
        with self.lock:
            return self.jobs.get(job_id)

    def generate_map_tasks(self, job: Job, splits: List[InputSplit]) -> List[MapTask]:
        """Create one map task per split and move the job into MAPPING"""
        with self.lock:
            if job.status != JobStatus.SUBMITTED:
                raise ValueError(f"Cannot start MAP phase from {job.status.value}")
            job.map_tasks = [MapTask(task_id=i, split=split) for i, split in enumerate(splits)]
            job.status = JobStatus.MAPPING
            self._check_map_barrier(job)
            return job.map_tasks

    def mark_map_task_running(self, job_id: str, task_id: int):
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.map_tasks):
                job.map_tasks[task_id].status = TaskStatus.RUNNING

    def mark_map_task_completed(self, job_id: str, task_id: int, intermediate_files: List[str]):
        """Mark map task as completed; the last one releases the shuffle barrier"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.map_tasks):
                task = job.map_tasks[task_id]
                task.status = TaskStatus.COMPLETED
                task.intermediate_files = list(intermediate_files)
                self._check_map_barrier(job)

    def _check_map_barrier(self, job: Job):
        # Caller holds self.lock
        if job.status != JobStatus.MAPPING:
            return
        if all(t.status == TaskStatus.COMPLETED for t in job.map_tasks):
            job.status = JobStatus.SHUFFLED

    def generate_reduce_tasks(self, job: Job) -> List[ReduceTask]:
        """
        Create R reduce tasks with intermediate file assignments

        Raises:
            ValueError: If any map task has not completed yet
        """
        with self.lock:
            if job.status != JobStatus.SHUFFLED:
                raise ValueError(f"Cannot start REDUCE phase from {job.status.value}: "
                                 f"maps not complete")

            reduce_tasks = []
            for partition_id in range(job.config.num_reduce_tasks):
                # Taken from the map task records, never from a directory listing
                files = [path for task in job.map_tasks for path in task.intermediate_files
                         if os.path.basename(path) == intermediate_file_name(task.task_id, partition_id)]
                reduce_tasks.append(ReduceTask(
                    task_id=partition_id,
                    partition_id=partition_id,
                    intermediate_files=files
                ))

            job.reduce_tasks = reduce_tasks
            job.status = JobStatus.REDUCING
            return reduce_tasks

    def mark_reduce_task_completed(self, job_id: str, task_id: int, output_file: str):
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.reduce_tasks):
                job.reduce_tasks[task_id].status = TaskStatus.COMPLETED
                job.reduce_tasks[task_id].output_file = output_file

    def mark_completed(self, job_id: str):
        """
        Mark job as completed

        Raises:
            ValueError: If the job is not reducing or a reduce task is unfinished
        """
        with self.lock:
            job = self.jobs[job_id]
            if job.status != JobStatus.REDUCING or not all(
                    t.status == TaskStatus.COMPLETED for t in job.reduce_tasks):
                raise ValueError("Cannot mark job complete - reduces not done")
            job.status = JobStatus.COMPLETED
            job.end_time = time.time()

    def mark_failed(self, job_id: str, error_message: str):
        """Move the job to FAILED; a job that already finished keeps its state"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and job.status not in _TERMINAL:
                job.status = JobStatus.FAILED
                job.error_message = error_message
                job.end_time = time.time()

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """Get current job status with progress"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            map_completed = sum(1 for t in job.map_tasks if t.status == TaskStatus.COMPLETED)
            reduce_completed = sum(1 for t in job.reduce_tasks if t.status == TaskStatus.COMPLETED)
            total_tasks = len(job.map_tasks) + len(job.reduce_tasks)

            progress = int(((map_completed + reduce_completed) / total_tasks * 100)) if total_tasks > 0 else 0

            return {
                'status': job.status.value,
                'progress': progress,
                'map_completed': map_completed,
                'map_total': len(job.map_tasks),
                'reduce_completed': reduce_completed,
                'reduce_total': len(job.reduce_tasks),
                'error_message': job.error_message,
            }
