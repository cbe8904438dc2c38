from __future__ import annotations
import logging
from typing import Mapping, Optional

from .entries import ComponentEntry, FileEntry

logger = logging.getLogger(__name__)


def is_file_changed(new: FileEntry, old: Optional[FileEntry]) -> bool:
    """
    Changed when there is no previous entry, the content differs, or the previous
    entry was archived without archive metadata (forces the archive to be rebuilt).
    """
    if old is None or old.content_id != new.content_id:
        return True
    return old.archived and not old.has_archive_metadata


def changed_files(new: list[FileEntry], old: Optional[Mapping[str, FileEntry]]) -> list[FileEntry]:
    """Entries of new that must be shipped again; all of them when old is None."""
    if old is None:
        return list(new)
    changed: list[FileEntry] = []
    for f in new:
        if is_file_changed(f, old.get(f.path)):
            logger.info(f.path)
            changed.append(f)
    return changed


def changed_components(new: list[ComponentEntry],
                       old: Optional[Mapping[str, ComponentEntry]]) -> list[ComponentEntry]:
    """Joined on component id; only the content id is compared, never the size."""
    if old is None:
        return list(new)
    changed: list[ComponentEntry] = []
    for c in new:
        prev = old.get(c.component_id)
        if prev is None or prev.content_id != c.content_id:
            logger.info("Custom component: %s", c.component_id)
            changed.append(c)
    return changed
