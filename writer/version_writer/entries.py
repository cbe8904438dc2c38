from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from .paths import ARCHIVE_SENTINEL


@dataclass
class FileEntry:
    """One distributable file, built fresh from disk (or from a manifest) each run."""
    path: str
    content_id: str = ""
    size_kb: int = 0
    archived: bool = False
    archive_id: Optional[str] = None
    archive_size_kb: int = -1

    @property
    def has_archive_metadata(self) -> bool:
        return bool(self.archive_id)

    @property
    def has_fresh_archive(self) -> bool:
        """Archive produced this run with usable metadata."""
        return bool(self.archive_id) and self.archive_size_kb > 0

    def version_value(self) -> str:
        return f"{self.content_id},{self.size_kb}"

    def archive_value(self) -> str:
        return format_archive_value(self.archive_id, self.archive_size_kb)


@dataclass
class ComponentEntry:
    """Named add-on: a file record plus its stable component id."""
    component_id: str
    file: FileEntry = field(default_factory=lambda: FileEntry(path=""))

    @property
    def content_id(self) -> str:
        return self.file.content_id

    @property
    def path(self) -> str:
        return self.file.path


# ----- [ArchivedFiles] values -----

def parse_archive_value(entry: str | None) -> tuple[Optional[str], int]:
    """
    "<id>,<size>" -> (id, size); "<size>" -> (None, size); "" -> (None, -1).
    An unparseable size is -1.
    """
    if not entry:
        return None, -1
    values = entry.split(",")
    archive_id = None
    raw_size = ""
    if len(values) == 1:
        raw_size = values[0]
    else:
        archive_id = values[0] or None
        raw_size = values[1]
    try:
        size = int(raw_size.strip())
    except ValueError:
        size = -1
    return archive_id, size


def format_archive_value(archive_id: Optional[str], size_kb: int) -> str:
    if archive_id is None:
        return ARCHIVE_SENTINEL
    return f"{archive_id},{size_kb}"


def is_archived(archive_id: Optional[str], size_kb: int) -> bool:
    return size_kb > -1 or bool(archive_id)
