from __future__ import annotations
import logging
from pathlib import Path

import psutil

logger = logging.getLogger(__name__)


def _existing_parent(p: Path) -> Path:
    p = p.resolve()
    while not p.exists() and p != p.parent:
        p = p.parent
    return p


def free_bytes(target: Path) -> int:
    return psutil.disk_usage(str(_existing_parent(target))).free


def check_disk_space(target: Path, required_bytes: int) -> bool:
    """Warn (never fail) when the volume holding target is short on space."""
    free = free_bytes(target)
    if free < required_bytes:
        logger.warning("Low disk space for '%s' (%.1f MB free, %.1f MB needed)",
                       target, free / (1024**2), required_bytes / (1024**2))
        return False
    return True
