from __future__ import annotations
import logging
import os
import shutil
import stat
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .errors import FileOperationError

logger = logging.getLogger(__name__)

_HIDDEN_OR_SYSTEM = getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0x2) | getattr(stat, "FILE_ATTRIBUTE_SYSTEM", 0x4)


def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def is_hidden_or_system(p: Path) -> bool:
    """Windows: hidden/system attribute bits. Elsewhere: dot-named entries."""
    if os.name == "nt":
        attrs = getattr(p.stat(), "st_file_attributes", 0)
        return bool(attrs & _HIDDEN_OR_SYSTEM)
    return p.name.startswith(".")


def is_non_empty_dir(p: Path) -> bool:
    return p.is_dir() and any(p.iterdir())


def safe_replace(src: Path, dst: Path) -> None:
    """Copy src over dst (parents created), replacing a stale copy if present."""
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_name(dst.name + ".tmp")
    shutil.copyfile(src, tmp)
    os.replace(str(tmp), str(dst))


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    delay: float = 1.0  # seconds between attempts


def _rmtree_if_exists(root: Path) -> None:
    if root.exists():
        shutil.rmtree(root)


def remove_tree(root: Path, policy: RetryPolicy = RetryPolicy(),
                on_retry: Optional[Callable[[int], None]] = None,
                sleep: Callable[[float], None] = time.sleep) -> bool:
    """
    Remove a directory tree, retrying transient failures.
    Returns True once root is gone, False when attempts are exhausted.
    """
    def _before_sleep(state: RetryCallState) -> None:
        logger.warning("Error deleting directory '%s': %s", root, state.outcome.exception())
        if on_retry:
            on_retry(policy.attempts - state.attempt_number)

    retrying = Retrying(
        stop=stop_after_attempt(policy.attempts),
        wait=wait_fixed(policy.delay),
        retry=retry_if_exception_type(OSError),
        before_sleep=_before_sleep,
        sleep=sleep,
        reraise=True,
    )
    try:
        retrying(_rmtree_if_exists, root)
    except OSError as e:
        logger.warning("Error deleting directory '%s': %s", root, e)
        return False
    return True


def prepare_copy_directory(directory: Path,
                           confirm: Optional[Callable[[Path], bool]] = None,
                           policy: RetryPolicy = RetryPolicy(),
                           on_retry: Optional[Callable[[int], None]] = None,
                           sleep: Callable[[float], None] = time.sleep) -> None:
    """
    Clear a non-empty copy directory before new files land in it.
    confirm=None means yes. Declining keeps the directory and copies over it.
    Raises FileOperationError when the directory cannot be removed.
    """
    if not is_non_empty_dir(directory):
        return

    if confirm is not None and not confirm(directory):
        logger.info("Keeping existing directory '%s'; files will be overwritten.", directory.name)
        return

    logger.info("Attempting to delete directory '%s' and all subdirectories & files.", directory.name)
    if not remove_tree(directory, policy, on_retry=on_retry, sleep=sleep):
        raise FileOperationError(f"Directory '{directory.name}' and/or files in it could not be removed. Aborting.")

    logger.info("Directory '%s' and all files in it were successfully removed.", directory.name)
    ensure_dir(directory)
