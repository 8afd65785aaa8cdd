"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_text():
    """Sample text for testing"""
    return """The quick brown fox jumps over the lazy dog.
The dog was really lazy.
The fox was very quick and brown.
Quick brown foxes are amazing animals.
Lazy dogs sleep all day."""


@pytest.fixture
def sample_input_file(temp_dir, sample_text):
    """Create a sample input file for testing"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w') as f:
        f.write(sample_text)
    return filepath


@pytest.fixture
def wordcount_job_file():
    """Path to the word count job file"""
    return os.path.join(PROJECT_ROOT, 'mrwordcount', 'jobs', 'wordcount.py')


def read_output(output_dir):
    """Read every part file of a job's output into a {word: count} dict"""
    counts = {}
    for name in sorted(os.listdir(output_dir)):
        if not name.startswith('part-'):
            continue
        with open(os.path.join(output_dir, name), encoding='utf-8') as f:
            for line in f:
                word, count = line.rstrip('\n').split('\t')
                assert word not in counts, f"{word} appears in more than one partition"
                counts[word] = int(count)
    return counts


@pytest.fixture
def output_reader():
    """Helper that parses word<TAB>count output directories"""
    return read_output
