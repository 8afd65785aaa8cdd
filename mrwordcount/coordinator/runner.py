#!/usr/bin/env python3
"""
Local job runner
Drives a job through the map, shuffle and reduce phases on a thread pool,
standing in for a cluster scheduler
"""

import logging
import os
import shutil
import tempfile
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional

from mrwordcount.common.config import EngineConfig
from mrwordcount.common.errors import JobError, OutputExistsError
from mrwordcount.coordinator.job_manager import (
    Job, JobManager, JobStatus, MapTask, ReduceTask, TaskStatus, list_input_files,
    validate_job_id
)
from mrwordcount.coordinator.metrics import MetricsCollector
from mrwordcount.jobs import wordcount
from mrwordcount.worker.map_executor import MapExecutor
from mrwordcount.worker.reduce_executor import ReduceExecutor, invoke_reduce
from mrwordcount.worker.shuffle import group_by_key

logger = logging.getLogger(__name__)

SUCCESS_MARKER = '_SUCCESS'


def _is_within(path: str, root: str) -> bool:
    """True if path resolves to a location strictly below root."""
    path = os.path.realpath(path)
    root = os.path.realpath(root)
    return path != root and os.path.commonpath([path, root]) == root


def run_in_memory(lines: Iterable[str],
                  map_fn: Callable = wordcount.map_function,
                  reduce_fn: Callable = wordcount.reduce_function) -> Dict:
    """
    Run map, group and reduce over in-memory lines.

    Each line's index is passed as its record key.

    Returns:
        Dictionary mapping each output key to its value
    """
    pairs = [
        pair
        for offset, line in enumerate(lines)
        for pair in map_fn(offset, line)
    ]
    results = {}
    for key, values in group_by_key(pairs).items():
        for out_key, out_value in invoke_reduce(reduce_fn, key, values):
            results[out_key] = out_value
    return results


class LocalJobRunner:
    """Runs MapReduce jobs in this process"""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.job_manager = JobManager()
        self.metrics = MetricsCollector()
        self.last_job_id: Optional[str] = None

    def run(self, input_path: str, output_path: str, job_id: Optional[str] = None) -> bool:
        """
        Run a job to completion.

        Args:
            input_path: Input file or directory
            output_path: Output directory; must not exist yet
            job_id: Job identifier (generated if not provided)

        Returns:
            True if every task succeeded and the output was committed

        Raises:
            ValueError: If job_id is not a single path component
        """
        job_id = validate_job_id(job_id or uuid.uuid4().hex[:12])
        self.last_job_id = job_id
        work_root = self.config.work_dir or tempfile.mkdtemp(prefix='mrwordcount-')
        job = self.job_manager.create_job(
            job_id=job_id,
            input_path=input_path,
            output_path=output_path,
            job_file=self.config.job_file,
            num_map_tasks=self.config.num_map_tasks,
            num_reduce_tasks=self.config.num_reduce_tasks,
            use_combiner=self.config.use_combiner,
            intermediate_dir=os.path.join(work_root, job_id)
        )
        logger.info(f"Job {job_id}: {input_path} -> {output_path}")

        output_pairs = 0
        succeeded = False
        try:
            output_pairs = self._execute(job)
            succeeded = True
        except (JobError, OSError) as e:
            logger.error(f"Job {job_id} failed: {e}")
            self.job_manager.set_status(job_id, JobStatus.FAILED, str(e))
        finally:
            if self.metrics.get_metrics(job_id):
                self.metrics.end_job(job_id, output_path, output_pairs, succeeded)
            if _is_within(job.intermediate_dir, work_root):
                shutil.rmtree(job.intermediate_dir, ignore_errors=True)
            if not self.config.work_dir:
                shutil.rmtree(work_root, ignore_errors=True)

        return succeeded

    def _execute(self, job: Job) -> int:
        """Run all phases of a job, returning the number of output pairs."""
        if os.path.exists(job.output_path):
            raise OutputExistsError(job.output_path)

        input_files = list_input_files(job.input_path)
        self.job_manager.generate_map_tasks(job)
        self.metrics.start_job(job.job_id, len(job.map_tasks), job.num_reduce_tasks,
                               job.use_combiner, input_files)

        # Map phase
        self.job_manager.set_status(job.job_id, JobStatus.MAP_PHASE)
        logger.info(f"Job {job.job_id}: Starting map phase with {len(job.map_tasks)} tasks "
                    f"over {len(input_files)} files")
        map_results = self._run_tasks(job.map_tasks, lambda task: self._run_map_task(job, task))
        self._raise_on_failure('Map', map_results)
        self.job_manager.set_status(job.job_id, JobStatus.SHUFFLE_PHASE)
        self.metrics.end_map_phase(job.job_id,
                                   sum(r['records_read'] for r in map_results),
                                   sum(r['pairs_emitted'] for r in map_results))

        # Reduce phase
        self.job_manager.generate_reduce_tasks(job)
        self.job_manager.set_status(job.job_id, JobStatus.REDUCE_PHASE)
        self.metrics.start_reduce_phase(job.job_id, job.intermediate_dir)
        logger.info(f"Job {job.job_id}: Starting reduce phase with {len(job.reduce_tasks)} tasks")
        reduce_results = self._run_tasks(job.reduce_tasks, lambda task: self._run_reduce_task(job, task))
        self._raise_on_failure('Reduce', reduce_results)

        os.makedirs(job.output_path, exist_ok=True)
        open(os.path.join(job.output_path, SUCCESS_MARKER), 'w').close()
        self.job_manager.set_status(job.job_id, JobStatus.COMPLETED)

        output_pairs = sum(r['pairs_emitted'] for r in reduce_results)
        logger.info(f"Job {job.job_id} completed: {output_pairs} output pairs")
        return output_pairs

    def _run_tasks(self, tasks: List, run_task: Callable) -> List[dict]:
        """Run tasks concurrently and collect their result dictionaries."""
        if not tasks:
            return []

        results = []
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = [executor.submit(run_task, task) for task in tasks]
            for future in as_completed(futures):
                results.append(future.result())
        return results

    def _raise_on_failure(self, phase: str, results: List[dict]):
        failures = [r['error_message'] for r in results if not r['success']]
        if failures:
            raise JobError(f"{phase} phase failed: {len(failures)} task(s) failed, "
                           f"first error: {failures[0]}")

    def _run_map_task(self, job: Job, task: MapTask) -> dict:
        self.job_manager.mark_map_task(job.job_id, task.task_id, TaskStatus.ASSIGNED)
        executor = MapExecutor(
            task_id=task.task_id,
            input_path=task.input_path,
            start_offset=task.start_offset,
            end_offset=task.end_offset,
            num_reduce_tasks=job.num_reduce_tasks,
            job_file=job.job_file,
            use_combiner=job.use_combiner,
            intermediate_dir=job.intermediate_dir
        )
        result = executor.execute()
        status = TaskStatus.COMPLETED if result['success'] else TaskStatus.FAILED
        self.job_manager.mark_map_task(job.job_id, task.task_id, status)
        return result

    def _run_reduce_task(self, job: Job, task: ReduceTask) -> dict:
        self.job_manager.mark_reduce_task(job.job_id, task.task_id, TaskStatus.ASSIGNED)
        executor = ReduceExecutor(
            task_id=task.task_id,
            partition_id=task.partition_id,
            intermediate_files=task.intermediate_files,
            job_file=job.job_file,
            output_path=job.output_path
        )
        result = executor.execute()
        status = TaskStatus.COMPLETED if result['success'] else TaskStatus.FAILED
        self.job_manager.mark_reduce_task(job.job_id, task.task_id, status)
        return result
