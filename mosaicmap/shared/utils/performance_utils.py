"""Timing and memory helpers."""
import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator

import psutil

logger = logging.getLogger(__name__)


@contextmanager
def timing_context(name: str, log_level: int = logging.DEBUG) -> Iterator[Dict[str, float]]:
    """Measure the wall-clock time of a block.

    The yielded dict receives an ``elapsed`` entry (seconds) when the block exits.

    Args:
        name: Label used in the log message
        log_level: Level of the log message
    """
    timing = {"elapsed": 0.0}
    start = time.perf_counter()
    try:
        yield timing
    finally:
        timing["elapsed"] = time.perf_counter() - start
        logger.log(log_level, f"{name} took {timing['elapsed'] * 1000:.1f}ms")


def memory_usage() -> Dict[str, float]:
    """Get memory usage of the current process and the system.

    Returns:
        Dictionary with process RSS and system availability in megabytes
    """
    process = psutil.Process()
    vm = psutil.virtual_memory()
    return {
        'process_rss_mb': process.memory_info().rss / 1024 ** 2,
        'system_available_mb': vm.available / 1024 ** 2,
        'system_percent_used': vm.percent,
    }
