"""
Performance metrics collection for MapReduce jobs.
"""

import glob
import json
import os
import time
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

import psutil


def _total_size(paths: List[str]) -> int:
    return sum(os.path.getsize(p) for p in paths if os.path.isfile(p))


@dataclass
class JobMetrics:
    """Metrics for a single MapReduce job execution."""

    job_id: str
    start_time: float
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    input_size_bytes: int
    end_time: float = 0.0
    map_phase_start: float = 0.0
    map_phase_end: float = 0.0
    reduce_phase_start: float = 0.0
    reduce_phase_end: float = 0.0
    records_read: int = 0
    intermediate_pairs: int = 0
    output_pairs: int = 0
    intermediate_size_bytes: int = 0
    output_size_bytes: int = 0
    peak_memory_bytes: int = 0
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

    def to_dict(self) -> dict:
        """Convert metrics to dictionary, including derived timings."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['map_phase_time_seconds'] = self.map_phase_time_seconds
        data['reduce_phase_time_seconds'] = self.reduce_phase_time_seconds
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects and manages metrics for MapReduce jobs."""

    def __init__(self):
        self.job_metrics: Dict[str, JobMetrics] = {}
        self.process = psutil.Process()

    def _sample_memory(self, job_id: str):
        rss = self.process.memory_info().rss
        metrics = self.job_metrics[job_id]
        metrics.peak_memory_bytes = max(metrics.peak_memory_bytes, rss)

    def start_job(self, job_id: str, num_map_tasks: int, num_reduce_tasks: int,
                  use_combiner: bool, input_files: List[str]):
        """Initialize metrics tracking for a new job."""
        now = time.time()
        self.job_metrics[job_id] = JobMetrics(
            job_id=job_id,
            start_time=now,
            map_phase_start=now,
            num_map_tasks=num_map_tasks,
            num_reduce_tasks=num_reduce_tasks,
            use_combiner=use_combiner,
            input_size_bytes=_total_size(input_files)
        )
        self._sample_memory(job_id)

    def end_map_phase(self, job_id: str, records_read: int, intermediate_pairs: int):
        """Mark the end of the map phase."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            metrics.map_phase_end = time.time()
            metrics.records_read = records_read
            metrics.intermediate_pairs = intermediate_pairs
            self._sample_memory(job_id)

    def start_reduce_phase(self, job_id: str, intermediate_dir: str):
        """Mark the start of the reduce phase and measure intermediate data."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            metrics.reduce_phase_start = time.time()
            pattern = os.path.join(intermediate_dir, "map-*-reduce-*.jsonl")
            metrics.intermediate_size_bytes = _total_size(glob.glob(pattern))

    def end_job(self, job_id: str, output_path: str, output_pairs: int, succeeded: bool):
        """Mark job completion and measure output size."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            now = time.time()
            if metrics.reduce_phase_start:
                metrics.reduce_phase_end = now
            metrics.end_time = now
            metrics.output_pairs = output_pairs
            metrics.succeeded = succeeded
            metrics.output_size_bytes = _total_size(
                glob.glob(os.path.join(output_path, "part-*")))
            self._sample_memory(job_id)

    def get_metrics(self, job_id: str) -> Optional[JobMetrics]:
        """Retrieve metrics for a specific job."""
        return self.job_metrics.get(job_id)
