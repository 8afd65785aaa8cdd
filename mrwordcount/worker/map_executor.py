#!/usr/bin/env python3
"""
Map Task Executor
Executes map tasks by reading input splits, applying the map function,
partitioning output, and writing intermediate files
"""

import json
import logging
import os
import time
from collections import defaultdict
from typing import Dict, List

from mrwordcount.common.records import Emission, Record
from mrwordcount.worker.function_loader import FunctionLoader
from mrwordcount.worker.lifecycle import task_lifecycle
from mrwordcount.worker.shuffle import group_by_key, partition_for

logger = logging.getLogger(__name__)


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, input_path: str, start_offset: int,
                 end_offset: int, num_reduce_tasks: int, job_file: str,
                 use_combiner: bool, intermediate_dir: str):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            input_path: Path to input file
            start_offset: Byte offset where this task should start reading
            end_offset: Byte offset where this task should stop reading
            num_reduce_tasks: Number of reduce tasks (for partitioning)
            job_file: Path or module name of the job's map/reduce functions
            use_combiner: Whether to apply combiner function
            intermediate_dir: Directory for this job's intermediate files
        """
        self.task_id = task_id
        self.input_path = input_path
        self.start_offset = start_offset
        self.end_offset = end_offset
        self.num_reduce_tasks = num_reduce_tasks
        self.job_file = job_file
        self.use_combiner = use_combiner
        self.intermediate_dir = intermediate_dir
        self.loader = FunctionLoader(job_file)

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'records_read', 'pairs_emitted' and 'intermediate_files' fields
        """
        start_time = time.time()
        records_read = 0
        pairs_emitted = 0

        try:
            with task_lifecycle('map', self.task_id):
                map_func = self.loader.get_map_function()

                records = self._read_input_split()
                records_read = len(records)
                logger.info(f"Map task {self.task_id}: Processing {records_read} records "
                            f"from {self.input_path}[{self.start_offset}:{self.end_offset}]")

                intermediate: Dict[int, List[Emission]] = defaultdict(list)
                for record in records:
                    for out_key, out_value in map_func(record.offset, record.line):
                        partition = partition_for(out_key, self.num_reduce_tasks)
                        intermediate[partition].append((out_key, out_value))

                pairs_emitted = sum(len(v) for v in intermediate.values())
                logger.info(f"Map task {self.task_id}: Generated {pairs_emitted} intermediate pairs")

                if self.use_combiner:
                    intermediate = self._apply_combiner(intermediate)
                    pairs_emitted = sum(len(v) for v in intermediate.values())
                    logger.info(f"Map task {self.task_id}: After combiner: {pairs_emitted} pairs")

                files = self._write_intermediate_files(intermediate)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Map task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'records_read': records_read,
                'pairs_emitted': pairs_emitted,
                'intermediate_files': files,
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Map task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'records_read': records_read,
                'pairs_emitted': 0,
                'intermediate_files': [],
            }

    def _read_input_split(self) -> List[Record]:
        """
        Read assigned portion of input file with line boundary alignment

        A split owns every line that begins in [start_offset, end_offset).
        When start_offset > 0 the line straddling the boundary belongs to
        the previous split, so reading resumes after the next newline at
        or past start_offset - 1.

        Returns:
            List of Record(offset, line) with line endings removed
        """
        records = []

        with open(self.input_path, 'rb') as f:
            if self.start_offset > 0:
                f.seek(self.start_offset - 1)
                f.readline()

            while True:
                offset = f.tell()
                if offset >= self.end_offset:
                    break
                raw = f.readline()
                if not raw:
                    break
                line = raw.decode('utf-8', errors='replace').rstrip('\r\n')
                records.append(Record(offset, line))

        return records

    def _apply_combiner(self, intermediate: Dict[int, List[Emission]]) -> Dict[int, List[Emission]]:
        """
        Apply combiner function to local map output

        Args:
            intermediate: Dictionary mapping partition_id to list of (key, value) pairs

        Returns:
            Dictionary with same structure but with combined values
        """
        combiner_func = self.loader.get_combiner_function()
        if not combiner_func:
            return intermediate

        combined = {}
        for partition, kv_pairs in intermediate.items():
            combined[partition] = [
                pair
                for key, values in group_by_key(kv_pairs).items()
                for pair in combiner_func(key, values)
            ]
        return combined

    def _write_intermediate_files(self, intermediate: Dict[int, List[Emission]]) -> List[str]:
        """
        Write intermediate key-value pairs to disk as JSON lines

        Args:
            intermediate: Dictionary mapping partition_id to list of (key, value) pairs

        Returns:
            Paths of the files written, one per non-empty partition
        """
        os.makedirs(self.intermediate_dir, exist_ok=True)

        paths = []
        for partition in sorted(intermediate):
            kv_pairs = intermediate[partition]
            if not kv_pairs:
                continue

            filename = os.path.join(
                self.intermediate_dir, f"map-{self.task_id}-reduce-{partition}.jsonl")
            with open(filename, 'w', encoding='utf-8') as f:
                for key, value in kv_pairs:
                    f.write(json.dumps({'key': key, 'value': value}) + '\n')
            paths.append(filename)

        logger.debug(f"Map task {self.task_id}: Wrote {len(paths)} intermediate files")
        return paths
