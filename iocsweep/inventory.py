"""Host environment reporting at the start of a sweep."""

import logging
import platform
import socket
import sys
from typing import Optional

import psutil

logger = logging.getLogger(__name__)


def human_bytes(size: float) -> str:
    """1536 -> '1.5 KB'"""
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if abs(size) < 1024 or unit == "TB":
            return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024


def log_environment(log: Optional[logging.Logger] = None) -> None:
    """Log command line, OS, CPU, memory and disk information."""
    log = log or logger

    log.info(f"Command line flags FLAGS: {sys.argv}")
    log.info(f"Operating system information OS: {platform.system()} ARCH: {platform.machine()}")
    log.info(
        f"System information NAME: {platform.system()} KERNEL: {platform.release()} "
        f"OS_VER: {platform.version()} HOSTNAME: {socket.gethostname()}"
    )

    try:
        freq = psutil.cpu_freq()
        log.info(
            f"CPU information NUM_CORES: {psutil.cpu_count()} "
            f"FREQUENCY: {f'{freq.current:.0f} MHz' if freq else 'unknown'} "
            f"PROCESSOR: {platform.processor() or 'unknown'}"
        )
    except (OSError, RuntimeError, NotImplementedError) as e:
        log.debug(f"Cannot read CPU information: {e}")

    memory = psutil.virtual_memory()
    log.info(f"Memory information TOTAL: {human_bytes(memory.total)} USED: {human_bytes(memory.used)}")

    for partition in psutil.disk_partitions(all=False):
        try:
            usage = psutil.disk_usage(partition.mountpoint)
        except OSError as e:
            log.debug(f"Cannot read disk usage MOUNT_POINT: {partition.mountpoint} ERROR: {e}")
            continue
        log.info(
            f"Hard disk NAME: {partition.device} FS_TYPE: {partition.fstype} "
            f"MOUNT_POINT: {partition.mountpoint} AVAIL: {human_bytes(usage.free)} "
            f"TOTAL: {human_bytes(usage.total)}"
        )
