"""
Data passed between the map and reduce stages.
"""

from dataclasses import dataclass
from typing import Any, Tuple

# (key, value) as emitted by a map or combiner function
Emission = Tuple[Any, Any]


@dataclass(frozen=True)
class Record:
    """One input line and the byte offset it starts at"""
    offset: int
    line: str
