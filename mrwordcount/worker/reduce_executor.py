#!/usr/bin/env python3
"""
Reduce Task Executor
Executes reduce tasks by reading intermediate data, grouping by key,
applying the reduce function, and writing final output
"""

import json
import logging
import os
import time
from collections.abc import Iterable
from typing import Any, List

from mrwordcount.common.records import Emission
from mrwordcount.worker.function_loader import FunctionLoader
from mrwordcount.worker.lifecycle import task_lifecycle
from mrwordcount.worker.shuffle import group_by_key

logger = logging.getLogger(__name__)


def output_filename(partition_id: int) -> str:
    """Name of the output file written by a reduce partition."""
    return f"part-{partition_id:05d}"


def invoke_reduce(reduce_func, key: Any, values: List[Any]) -> List[Emission]:
    """
    Call reduce_func for one key group.

    reduce_func may yield (key, value) tuples or return a single value,
    in which case the group's key is paired with it. Errors raised while
    the reduce runs propagate to the caller.
    """
    result = reduce_func(key, values)
    if isinstance(result, (str, bytes)) or not isinstance(result, Iterable):
        return [(key, result)]
    return [(out_key, out_value) for out_key, out_value in result]


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, partition_id: int, intermediate_files: list,
                 job_file: str, output_path: str):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            partition_id: Partition ID this reduce task is responsible for
            intermediate_files: List of intermediate file paths to read
            job_file: Path or module name of the job's map/reduce functions
            output_path: Directory path where final output should be written
        """
        self.task_id = task_id
        self.partition_id = partition_id
        self.intermediate_files = intermediate_files
        self.job_file = job_file
        self.output_path = output_path
        self.loader = FunctionLoader(job_file)

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'records_read', 'pairs_emitted' and 'output_file' fields
        """
        start_time = time.time()
        records_read = 0

        try:
            with task_lifecycle('reduce', self.task_id):
                reduce_func = self.loader.get_reduce_function()

                pairs = self._read_intermediate()
                records_read = len(pairs)
                key_groups = group_by_key(pairs)
                logger.info(f"Reduce task {self.task_id}: Grouped {records_read} pairs "
                            f"into {len(key_groups)} unique keys")

                results: List[Emission] = []
                for key in sorted(key_groups):
                    results.extend(invoke_reduce(reduce_func, key, key_groups[key]))

                output_file = self._write_output(results)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Reduce task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'records_read': records_read,
                'pairs_emitted': len(results),
                'output_file': output_file,
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Reduce task {self.task_id} failed: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'records_read': records_read,
                'pairs_emitted': 0,
                'output_file': '',
            }

    def _read_intermediate(self) -> List[Emission]:
        """
        Read all intermediate files for this partition

        Returns:
            List of (key, value) pairs in file order
        """
        pairs = []
        files_read = 0
        lines_skipped = 0

        for filepath in self.intermediate_files:
            if not os.path.exists(filepath):
                logger.warning(f"Reduce task {self.task_id}: file not found: {filepath}")
                continue

            files_read += 1

            with open(filepath, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue

                    try:
                        record = json.loads(line)
                        pairs.append((record['key'], record['value']))
                    except (json.JSONDecodeError, KeyError, TypeError) as e:
                        lines_skipped += 1
                        logger.warning(f"Reduce task {self.task_id}: Skipping malformed line "
                                       f"in {filepath}: {e}")

        logger.info(f"Reduce task {self.task_id}: Read {files_read} files, "
                    f"{len(pairs)} records, skipped {lines_skipped} malformed records")
        return pairs

    def _write_output(self, results: List[Emission]) -> str:
        """
        Write final reduce output as key<TAB>value lines

        Args:
            results: List of (key, value) tuples to write

        Returns:
            Path of the output file
        """
        os.makedirs(self.output_path, exist_ok=True)
        output_file = os.path.join(self.output_path, output_filename(self.partition_id))

        with open(output_file, 'w', encoding='utf-8') as f:
            for key, value in results:
                f.write(f"{key}\t{value}\n")

        logger.info(f"Reduce task {self.task_id}: Wrote {len(results)} pairs to {output_file}")
        return output_file
