"""
Classic MapReduce word count.
Counts how many times each word occurs across all input lines.

A word is a maximal run of ASCII word characters ([A-Za-z0-9_]);
everything else, including non-ASCII letters, separates words.
Case is preserved, so "We" and "we" are counted separately.
"""

import re
from typing import Iterable, Iterator, List, Tuple

WORD_PATTERN = re.compile(r'[A-Za-z0-9_]+')


def tokenize(line: str) -> List[str]:
    """Return the non-empty words of a line in left-to-right order."""
    return WORD_PATTERN.findall(line)


def map_function(key, value: str) -> Iterator[Tuple[str, int]]:
    """
    Map function: emit (word, 1) for each word in the line.

    Args:
        key: Record offset (unused)
        value: Text line

    Yields:
        (word, 1) tuples
    """
    for word in tokenize(value):
        yield (word, 1)


def reduce_function(key: str, values: Iterable[int]) -> Iterator[Tuple[str, int]]:
    """
    Reduce function: sum all counts for a word.

    Python ints do not overflow, so the total is exact for any corpus
    size. An empty sequence of values sums to 0.

    Args:
        key: Word
        values: Counts emitted for the word, in any order

    Yields:
        (word, total_count) tuple
    """
    total = 0
    for value in values:
        total += value
    yield (key, total)


def combiner_function(key: str, values: Iterable[int]) -> Iterator[Tuple[str, int]]:
    """Pre-aggregate counts inside a map task (same as reduce)."""
    yield from reduce_function(key, values)
