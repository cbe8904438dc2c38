from __future__ import annotations
import lzma
import logging
from pathlib import Path

import zstandard
from tqdm import tqdm

from .archive import compress_file, copy_file
from .config import WriterConfig
from .entries import FileEntry
from .errors import FileOperationError
from .fingerprint import hash_file, size_kb
from .log import tqdm_disable, tqdm_file
from .system import check_disk_space

logger = logging.getLogger(__name__)


def _copies_original(entry: FileEntry, config: WriterConfig) -> bool:
    return config.copy_archived_original_files or not entry.archived


def _builds_archive(entry: FileEntry, config: WriterConfig) -> bool:
    return config.archiving and entry.archived


def required_bytes(base_dir: Path, entries: list[FileEntry], config: WriterConfig) -> int:
    """Upper bound of what a copy step writes (archives never exceed their source by much)."""
    total = 0
    for e in entries:
        n = (base_dir / e.path).stat().st_size
        total += n * (int(_copies_original(e, config)) + int(_builds_archive(e, config)))
    return total


def archive_entry(base_dir: Path, directory: Path, entry: FileEntry, config: WriterConfig) -> Path:
    """Compress one file next to its copy and record the archive's id and size on the entry."""
    dst = directory / (entry.path + config.archive_suffix)
    compress_file(base_dir / entry.path, dst, config.archive_format)
    entry.archive_size_kb = size_kb(dst)
    entry.archive_id = hash_file(dst, config.hash_algorithm)
    return dst


def copy_entries(base_dir: Path, directory: Path, entries: list[FileEntry], config: WriterConfig,
                 label: str = "") -> int:
    """
    Copy changed files into directory and build their archives.
    Stops at the first failure (earlier copies stay in place).
    Returns number of processed entries; raises FileOperationError.
    """
    base_dir = Path(base_dir)
    directory = Path(directory)
    kind = "custom components" if label else "files"
    try:
        with tqdm(total=len(entries), desc=f"Copying {kind}", unit="file", file=tqdm_file(), disable=tqdm_disable()) as bar:
            for e in entries:
                if _copies_original(e, config):
                    copy_file(base_dir / e.path, directory / e.path)
                    logger.info("%s%s", label, e.path)
                if _builds_archive(e, config):
                    logger.info("%sCompressing archive: %s%s...", label, e.path, config.archive_suffix)
                    archive_entry(base_dir, directory, e, config)
                bar.update(1)
    except (OSError, lzma.LZMAError, zstandard.ZstdError) as e:
        raise FileOperationError(f"Error when copying {kind}. Message: {e}") from e
    return len(entries)


def copy_changed(base_dir: Path, directory: Path, files: list[FileEntry], components: list[FileEntry],
                 config: WriterConfig) -> None:
    """Copy step of a run: disk-space advisory, files, then custom components."""
    try:
        check_disk_space(directory, required_bytes(base_dir, files + components, config))
    except OSError as e:
        logger.warning("Could not check free disk space: %s", e)
    copy_entries(base_dir, directory, files, config)
    copy_entries(base_dir, directory, components, config, label="Custom component: ")
