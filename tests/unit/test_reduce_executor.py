"""
Unit tests for ReduceExecutor
"""

import json
import os
from unittest.mock import Mock, patch

import pytest

from mrwordcount.worker.reduce_executor import ReduceExecutor, invoke_reduce, output_filename

JOB_MODULE = 'mrwordcount.jobs.wordcount'


def write_intermediate(path, pairs):
    with open(path, 'w') as f:
        for key, value in pairs:
            f.write(json.dumps({'key': key, 'value': value}) + '\n')
    return path


def make_executor(files, output_path, partition_id=0, job_file=JOB_MODULE):
    return ReduceExecutor(
        task_id=partition_id,
        partition_id=partition_id,
        intermediate_files=files,
        job_file=job_file,
        output_path=output_path
    )


def read_lines(path):
    with open(path) as f:
        return [line.rstrip('\n') for line in f]


class TestReduceExecutorGrouping:
    """Tests for reading intermediate data"""

    def test_reads_pairs_from_all_files(self, temp_dir):
        """Test that pairs from several map outputs are combined"""
        file1 = write_intermediate(os.path.join(temp_dir, 'map-0-reduce-0.jsonl'),
                                   [('apple', 1), ('banana', 1), ('apple', 1)])
        file2 = write_intermediate(os.path.join(temp_dir, 'map-1-reduce-0.jsonl'),
                                   [('apple', 1), ('cherry', 1)])

        with patch('mrwordcount.worker.reduce_executor.FunctionLoader'):
            pairs = make_executor([file1, file2], temp_dir)._read_intermediate()

        assert len(pairs) == 5
        assert pairs.count(('apple', 1)) == 3

    def test_handles_missing_intermediate_files(self, temp_dir):
        """Test handling of non-existent intermediate files"""
        with patch('mrwordcount.worker.reduce_executor.FunctionLoader'):
            executor = make_executor(['/nonexistent/file.jsonl'], temp_dir)
            assert executor._read_intermediate() == []

    def test_skips_malformed_json_lines(self, temp_dir):
        """Test that malformed JSON lines are skipped"""
        path = os.path.join(temp_dir, 'map-0-reduce-0.jsonl')
        with open(path, 'w') as f:
            f.write(json.dumps({'key': 'apple', 'value': 1}) + '\n')
            f.write('invalid json line\n')
            f.write('\n')
            f.write(json.dumps({'missing': 'key_field'}) + '\n')
            f.write(json.dumps({'key': 'banana', 'value': 1}) + '\n')

        with patch('mrwordcount.worker.reduce_executor.FunctionLoader'):
            pairs = make_executor([path], temp_dir)._read_intermediate()

        assert pairs == [('apple', 1), ('banana', 1)]


class TestReduceExecutorOutput:
    """Tests for output generation"""

    def test_sums_counts_per_word(self, temp_dir):
        """Test the word count reduce over grouped data"""
        file1 = write_intermediate(os.path.join(temp_dir, 'map-0-reduce-0.jsonl'),
                                   [('a', 1), ('a', 1)])
        file2 = write_intermediate(os.path.join(temp_dir, 'map-1-reduce-0.jsonl'), [('a', 1)])
        output_dir = os.path.join(temp_dir, 'output')

        result = make_executor([file1, file2], output_dir).execute()

        assert result['success'] is True
        assert result['records_read'] == 3
        assert result['pairs_emitted'] == 1
        assert read_lines(result['output_file']) == ["a\t3"]

    def test_output_is_sorted_by_key(self, temp_dir):
        """Test that reduce output is sorted by key"""
        path = write_intermediate(os.path.join(temp_dir, 'map-0-reduce-0.jsonl'),
                                  [('zebra', 1), ('apple', 1), ('mango', 1)])

        result = make_executor([path], os.path.join(temp_dir, 'output')).execute()

        keys = [line.split('\t')[0] for line in read_lines(result['output_file'])]
        assert keys == ['apple', 'mango', 'zebra']

    def test_output_file_named_after_partition(self, temp_dir):
        """Test part file naming"""
        output_dir = os.path.join(temp_dir, 'output')
        result = make_executor([], output_dir, partition_id=3).execute()

        assert result['output_file'] == os.path.join(output_dir, 'part-00003')
        assert output_filename(12) == 'part-00012'

    def test_no_input_writes_empty_part_file(self, temp_dir):
        """Test a partition with no data produces an empty file"""
        result = make_executor([], os.path.join(temp_dir, 'output')).execute()

        assert result['success'] is True
        assert result['pairs_emitted'] == 0
        assert read_lines(result['output_file']) == []

    def test_reduce_error_is_reported(self, temp_dir):
        """Test that a failing reduce function yields success=False"""
        path = write_intermediate(os.path.join(temp_dir, 'map-0-reduce-0.jsonl'), [('a', 1)])

        def broken_reduce(key, values):
            raise ValueError("bad values")

        mock_loader = Mock()
        mock_loader.get_reduce_function.return_value = broken_reduce

        with patch('mrwordcount.worker.reduce_executor.FunctionLoader', return_value=mock_loader):
            result = make_executor([path], os.path.join(temp_dir, 'output')).execute()

        assert result['success'] is False
        assert 'bad values' in result['error_message']

    def test_corrupted_intermediate_value_fails_task(self, temp_dir):
        """Test a non-integer count fails the task instead of writing garbage"""
        path = write_intermediate(os.path.join(temp_dir, 'map-0-reduce-0.jsonl'),
                                  [('a', 1), ('a', 'x')])
        output_dir = os.path.join(temp_dir, 'output')

        result = make_executor([path], output_dir).execute()

        assert result['success'] is False
        assert result['output_file'] == ''
        assert not os.path.exists(os.path.join(output_dir, output_filename(0)))


class TestInvokeReduce:
    """Tests for the reduce return conventions"""

    def test_generator_of_pairs(self):
        """Test reduce functions that yield pairs"""
        def reduce_fn(key, values):
            yield (key, sum(values))

        assert invoke_reduce(reduce_fn, 'w', [1, 2]) == [('w', 3)]

    def test_single_return_value(self):
        """Test reduce functions that return a bare value"""
        def reduce_fn(key, values):
            return sum(values)

        assert invoke_reduce(reduce_fn, 'w', [1, 2]) == [('w', 3)]

    def test_string_return_value_is_not_iterated(self):
        """Test a str result is paired with the key as a single value"""
        def reduce_fn(key, values):
            return ",".join(values)

        assert invoke_reduce(reduce_fn, 'w', ['p', 'q']) == [('w', 'p,q')]

    def test_type_error_inside_reduce_propagates(self):
        """Test errors raised by the reduce body reach the caller"""
        def reduce_fn(key, values):
            total = 0
            for value in values:
                total += value
            yield (key, total)

        with pytest.raises(TypeError):
            invoke_reduce(reduce_fn, 'a', [1, 'x'])
