"""
Setup and cleanup hooks around a batch of map or reduce invocations.
"""

import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)


@contextmanager
def task_lifecycle(kind: str, task_id: int):
    """
    Log setup before a task's invocations and cleanup after them.

    Cleanup is logged even when the task raises. Nothing is yielded:
    the map and reduce functions never see per-task state.

    Args:
        kind: 'map' or 'reduce'
        task_id: ID of the task being run
    """
    logger.info(f"{kind.capitalize()} task {task_id}: setup")
    try:
        yield
    finally:
        logger.info(f"{kind.capitalize()} task {task_id}: cleanup")
