#!/usr/bin/env python3
"""
Job Manager for the local MapReduce engine
Handles job state management, task generation, and progress tracking
"""

import glob
import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from mrwordcount.common.errors import InputNotFoundError


class JobStatus(Enum):
    """Status of a MapReduce job"""
    PENDING = "pending"
    MAP_PHASE = "map_phase"
    SHUFFLE_PHASE = "shuffle_phase"
    REDUCE_PHASE = "reduce_phase"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual map or reduce tasks"""
    PENDING = "pending"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MapTask:
    """A byte range of one input file"""
    task_id: int
    input_path: str
    start_offset: int
    end_offset: int
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class ReduceTask:
    """One reduce partition and the intermediate files feeding it"""
    task_id: int
    partition_id: int
    intermediate_files: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class Job:
    """Represents a complete MapReduce job"""
    job_id: str
    input_path: str
    output_path: str
    job_file: str
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    intermediate_dir: str
    status: JobStatus = JobStatus.PENDING
    map_tasks: List[MapTask] = field(default_factory=list)
    reduce_tasks: List[ReduceTask] = field(default_factory=list)
    error_message: str = ''
    start_time: float = 0.0
    end_time: float = 0.0


def validate_job_id(job_id: str) -> str:
    """
    Check that a job ID can name a directory under the work dir.

    Raises:
        ValueError: If the ID is empty, '.', '..' or contains a path separator
    """
    if not job_id or job_id in ('.', '..') or os.path.basename(job_id) != job_id \
            or (os.altsep and os.altsep in job_id):
        raise ValueError(f"Invalid job ID {job_id!r}: must be a single path component")
    return job_id


def list_input_files(input_path: str) -> List[str]:
    """
    Resolve an input location to the files it covers.

    A directory contributes every regular file whose name doesn't start
    with '_' or '.', sorted by name.
    """
    if not os.path.exists(input_path):
        raise InputNotFoundError(input_path)

    if os.path.isfile(input_path):
        return [input_path]

    return [
        os.path.join(input_path, name)
        for name in sorted(os.listdir(input_path))
        if not name.startswith(('_', '.')) and os.path.isfile(os.path.join(input_path, name))
    ]


class JobManager:
    """Manages MapReduce jobs and their lifecycle"""

    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.lock = threading.Lock()

    def create_job(self, job_id: str, input_path: str, output_path: str, job_file: str,
                   num_map_tasks: int, num_reduce_tasks: int, use_combiner: bool,
                   intermediate_dir: str) -> Job:
        """Register a new job"""
        with self.lock:
            job = Job(
                job_id=job_id,
                input_path=input_path,
                output_path=output_path,
                job_file=job_file,
                num_map_tasks=num_map_tasks,
                num_reduce_tasks=num_reduce_tasks,
                use_combiner=use_combiner,
                intermediate_dir=intermediate_dir,
                start_time=time.time()
            )
            self.jobs[job.job_id] = job
            return job

    def generate_map_tasks(self, job: Job) -> List[MapTask]:
        """
        Split the job's input into map tasks.

        The split size is the total input size divided by num_map_tasks;
        every non-empty file gets at least one task and no task spans
        two files. Empty files produce no tasks.
        """
        files = list_input_files(job.input_path)
        sizes = {path: os.path.getsize(path) for path in files}
        total_size = sum(sizes.values())
        split_size = max(1, -(-total_size // job.num_map_tasks))

        map_tasks = []
        for path in files:
            file_size = sizes[path]
            for start in range(0, file_size, split_size):
                map_tasks.append(MapTask(
                    task_id=len(map_tasks),
                    input_path=path,
                    start_offset=start,
                    end_offset=min(start + split_size, file_size)
                ))

        job.map_tasks = map_tasks
        return map_tasks

    def generate_reduce_tasks(self, job: Job) -> List[ReduceTask]:
        """Create one reduce task per partition with its intermediate files"""
        reduce_tasks = []
        for partition_id in range(job.num_reduce_tasks):
            pattern = os.path.join(job.intermediate_dir, f"map-*-reduce-{partition_id}.jsonl")
            reduce_tasks.append(ReduceTask(
                task_id=partition_id,
                partition_id=partition_id,
                intermediate_files=sorted(glob.glob(pattern))
            ))

        job.reduce_tasks = reduce_tasks
        return reduce_tasks

    def set_status(self, job_id: str, status: JobStatus, error_message: str = ''):
        """Move a job to a new status"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return
            job.status = status
            if error_message:
                job.error_message = error_message
            if status in (JobStatus.COMPLETED, JobStatus.FAILED):
                job.end_time = time.time()

    def mark_map_task(self, job_id: str, task_id: int, status: TaskStatus):
        """Record a map task's outcome"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.map_tasks):
                job.map_tasks[task_id].status = status

                if all(t.status == TaskStatus.COMPLETED for t in job.map_tasks):
                    job.status = JobStatus.SHUFFLE_PHASE

    def mark_reduce_task(self, job_id: str, task_id: int, status: TaskStatus):
        """Record a reduce task's outcome"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.reduce_tasks):
                job.reduce_tasks[task_id].status = status

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """Get current job status with progress"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            map_completed = sum(1 for t in job.map_tasks if t.status == TaskStatus.COMPLETED)
            reduce_completed = sum(1 for t in job.reduce_tasks if t.status == TaskStatus.COMPLETED)
            total_tasks = len(job.map_tasks) + len(job.reduce_tasks)

            if job.status == JobStatus.COMPLETED:
                progress = 100
            elif total_tasks > 0:
                progress = int((map_completed + reduce_completed) / total_tasks * 100)
            else:
                progress = 0

            return {
                'status': job.status.value,
                'progress': progress,
                'map_completed': map_completed,
                'map_total': len(job.map_tasks),
                'reduce_completed': reduce_completed,
                'reduce_total': len(job.reduce_tasks),
                'error_message': job.error_message
            }
