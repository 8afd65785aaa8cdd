"""
Engine configuration.
Defaults can be overridden through environment variables; command line
options override both.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_JOB_MODULE = 'mrwordcount.jobs.wordcount'


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class EngineConfig:
    """Settings for the local MapReduce engine"""
    num_map_tasks: int = 4
    num_reduce_tasks: int = 2
    max_workers: int = 4
    use_combiner: bool = False
    job_file: str = DEFAULT_JOB_MODULE
    work_dir: Optional[str] = None
    log_level: str = 'INFO'

    def __post_init__(self):
        for name in ('num_map_tasks', 'num_reduce_tasks', 'max_workers'):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1, got {getattr(self, name)}")

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        """Build a config from MAPREDUCE_* environment variables."""
        return cls(
            num_map_tasks=_env_int('MAPREDUCE_NUM_MAP_TASKS', cls.num_map_tasks),
            num_reduce_tasks=_env_int('MAPREDUCE_NUM_REDUCE_TASKS', cls.num_reduce_tasks),
            max_workers=_env_int('MAPREDUCE_MAX_WORKERS', cls.max_workers),
            work_dir=os.getenv('MAPREDUCE_WORK_DIR') or None,
            log_level=os.getenv('MAPREDUCE_LOG_LEVEL', cls.log_level),
        )

    def with_overrides(self, **overrides) -> 'EngineConfig':
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)
