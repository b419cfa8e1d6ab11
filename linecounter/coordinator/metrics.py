"""
Performance metrics and counters for line counting jobs.
"""

import json
import logging
import os
import threading
import time
from dataclasses import dataclass, asdict
from typing import Dict, Optional

import psutil

logger = logging.getLogger(__name__)

COUNTER_NAMES = (
    'map_input_records',
    'map_output_records',
    'combine_input_records',
    'combine_output_records',
    'reduce_input_groups',
    'reduce_input_records',
    'reduce_output_records',
    'intermediate_bytes',
)


@dataclass
class JobMetrics:
    """Metrics for a single job execution."""

    job_id: str
    start_time: float
    end_time: float = 0.0
    map_phase_start: float = 0.0
    map_phase_end: float = 0.0
    reduce_phase_start: float = 0.0
    reduce_phase_end: float = 0.0
    num_input_files: int = 0
    num_map_tasks: int = 0
    num_reduce_tasks: int = 0
    use_combiner: bool = True
    input_size_bytes: int = 0
    output_size_bytes: int = 0
    peak_rss_bytes: int = 0
    map_input_records: int = 0
    map_output_records: int = 0
    combine_input_records: int = 0
    combine_output_records: int = 0
    reduce_input_groups: int = 0
    reduce_input_records: int = 0
    reduce_output_records: int = 0
    intermediate_bytes: int = 0
    succeeded: bool = False

    @property
    def total_time_seconds(self) -> float:
        """Total job execution time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        """Map phase execution time in seconds."""
        return self.map_phase_end - self.map_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        """Reduce phase execution time in seconds."""
        return self.reduce_phase_end - self.reduce_phase_start

    @property
    def combiner_reduction_ratio(self) -> float:
        """Fraction of map output records removed by the combiner."""
        if self.combine_input_records == 0:
            return 0.0
        return 1.0 - (self.combine_output_records / self.combine_input_records)

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['combiner_reduction_ratio'] = self.combiner_reduction_ratio
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects metrics for jobs; counters may be added from any map thread."""

    def __init__(self):
        self.job_metrics: Dict[str, JobMetrics] = {}
        self.process = psutil.Process()
        self._lock = threading.Lock()

    def _sample_memory(self, metrics: JobMetrics):
        rss = self.process.memory_info().rss
        if rss > metrics.peak_rss_bytes:
            metrics.peak_rss_bytes = rss

    def start_job(self, job_id: str, num_reduce_tasks: int, use_combiner: bool):
        """Initialize metrics tracking for a new job."""
        with self._lock:
            metrics = JobMetrics(
                job_id=job_id,
                start_time=time.time(),
                num_reduce_tasks=num_reduce_tasks,
                use_combiner=use_combiner,
            )
            self._sample_memory(metrics)
            self.job_metrics[job_id] = metrics

    def start_map_phase(self, job_id: str, input_files: list, num_map_tasks: int):
        """Record the map phase start and the input size."""
        with self._lock:
            metrics = self.job_metrics[job_id]
            metrics.map_phase_start = time.time()
            metrics.num_input_files = len(input_files)
            metrics.num_map_tasks = num_map_tasks
            metrics.input_size_bytes = sum(os.path.getsize(f) for f in input_files)

    def add_counters(self, job_id: str, counters: dict):
        """Add task counters to the job totals."""
        with self._lock:
            metrics = self.job_metrics[job_id]
            for name in COUNTER_NAMES:
                setattr(metrics, name, getattr(metrics, name) + counters.get(name, 0))
            self._sample_memory(metrics)

    def end_map_phase(self, job_id: str):
        """Mark the end of the map phase."""
        with self._lock:
            self.job_metrics[job_id].map_phase_end = time.time()

    def start_reduce_phase(self, job_id: str):
        """Mark the start of the reduce phase."""
        with self._lock:
            self.job_metrics[job_id].reduce_phase_start = time.time()

    def end_job(self, job_id: str, succeeded: bool, report_path: Optional[str] = None):
        """Mark job completion and calculate output size."""
        with self._lock:
            metrics = self.job_metrics[job_id]
            now = time.time()
            if metrics.reduce_phase_start and not metrics.reduce_phase_end:
                metrics.reduce_phase_end = now
            metrics.end_time = now
            metrics.succeeded = succeeded
            if report_path and os.path.exists(report_path):
                metrics.output_size_bytes = os.path.getsize(report_path)
            self._sample_memory(metrics)

    def get_metrics(self, job_id: str) -> Optional[JobMetrics]:
        """Retrieve metrics for a specific job."""
        return self.job_metrics.get(job_id)

    def log_summary(self, job_id: str):
        """Log the job counters, one per line."""
        metrics = self.job_metrics.get(job_id)
        if not metrics:
            return
        logger.info(f"Counters for job {job_id}:")
        for name in COUNTER_NAMES:
            logger.info(f"\t{name}={getattr(metrics, name)}")
        logger.info(f"\tpeak_rss_bytes={metrics.peak_rss_bytes}")
