"""Process resource snapshot attached to performance reports."""

import logging
from typing import Any, Dict

import psutil

logger = logging.getLogger(__name__)

HIGH_MEMORY_MB = 500


def process_memory_snapshot(high_memory_mb: float = HIGH_MEMORY_MB) -> Dict[str, Any]:
    """Memory and thread usage of the current process, in megabytes."""
    process = psutil.Process()
    memory = process.memory_info()
    rss_mb = round(memory.rss / 1024 / 1024, 1)

    snapshot = {
        'pid': process.pid,
        'rss_mb': rss_mb,
        'vms_mb': round(memory.vms / 1024 / 1024, 1),
        'num_threads': process.num_threads(),
        'high_memory': rss_mb > high_memory_mb
    }
    if snapshot['high_memory']:
        logger.warning(f"High memory usage detected: {rss_mb}MB RSS (threshold {high_memory_mb}MB)")
    return snapshot
