"""
Partitioning and grouping of intermediate key-value pairs.
"""

import hashlib
from collections import defaultdict
from typing import Any, Dict, Iterable, List

from mrwordcount.common.records import Emission


def partition_for(key: Any, num_partitions: int) -> int:
    """
    Pick the reduce partition for a key.

    The built-in hash() of a str is salted per process, so an md5 digest
    of the key is used instead. The same key always maps to the same
    partition, across tasks and across runs.

    Args:
        key: Intermediate key
        num_partitions: Number of reduce tasks

    Returns:
        Partition index in range(num_partitions)
    """
    digest = hashlib.md5(str(key).encode('utf-8')).digest()
    return int.from_bytes(digest[:8], 'big') % num_partitions


def group_by_key(pairs: Iterable[Emission]) -> Dict[Any, List[Any]]:
    """Group values by key, one entry per distinct key."""
    grouped = defaultdict(list)
    for key, value in pairs:
        grouped[key].append(value)
    return dict(grouped)
