from __future__ import annotations
import configparser
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .config import IniFile, WriterConfig
from .entries import (
    ComponentEntry, FileEntry,
    format_archive_value, is_archived, parse_archive_value,
)
from .errors import ManifestReadError, ManifestWriteError

logger = logging.getLogger(__name__)

# Manifest sections
DTA = "DTA"
FILE_VERSIONS = "FileVersions"
ADDONS = "AddOns"
ARCHIVED_FILES = "ArchivedFiles"


@dataclass
class Manifest:
    version: str = ""
    updater_version: str = ""
    manual_download_url: str = ""
    files: dict[str, FileEntry] = field(default_factory=dict)
    components: dict[str, ComponentEntry] = field(default_factory=dict)
    archives: dict[str, str] = field(default_factory=dict)


# ----- READER -----

def _open(path: Path) -> IniFile:
    try:
        return IniFile(path)
    except (configparser.Error, UnicodeDecodeError) as e:
        raise ManifestReadError(f"Could not parse version file '{path}': {e}") from e


def read_manifest(path: str | Path) -> Optional[Manifest]:
    """
    Parse a version file. Returns None when it does not exist.
    Raises ManifestReadError when it exists but cannot be parsed.
    """
    path = Path(path)
    if not path.is_file():
        return None
    ini = _open(path)
    man = Manifest(
        version=ini.get(DTA, "Version"),
        updater_version=ini.get(DTA, "UpdaterVersion"),
        manual_download_url=ini.get(DTA, "ManualDownloadURL"),
        archives=dict(ini.pairs(ARCHIVED_FILES)),
    )

    for key, value in ini.pairs(FILE_VERSIONS):
        parts = value.split(",")
        if len(parts) < 2 or len(parts) > 3:
            continue
        try:
            size = int(parts[1].strip())
        except ValueError:
            size = 0
        entry = FileEntry(path=key, content_id=parts[0], size_kb=size)
        _apply_archive(entry, man.archives.get(key, ""))
        man.files[key] = entry

    for key, value in ini.pairs(ADDONS):
        parts = value.split(",")
        if len(parts) < 2:
            continue
        try:
            size = int(parts[1].strip())
        except ValueError:
            continue
        # components read back from a manifest have no path, so this lookup
        # uses the empty key and normally finds nothing
        entry = FileEntry(path="", content_id=parts[0], size_kb=size)
        _apply_archive(entry, man.archives.get(entry.path, ""))
        man.components[key] = ComponentEntry(component_id=key, file=entry)

    return man


def _apply_archive(entry: FileEntry, raw: str) -> None:
    archive_id, size = parse_archive_value(raw)
    entry.archived = is_archived(archive_id, size)
    if entry.archived:
        entry.archive_id = archive_id
        entry.archive_size_kb = size


def load_prior_archives(path: str | Path) -> dict[str, str]:
    """[ArchivedFiles] of the manifest about to be overwritten, {} if none is usable."""
    path = Path(path)
    if not path.is_file():
        return {}
    try:
        return dict(_open(path).pairs(ARCHIVED_FILES))
    except ManifestReadError as e:
        logger.warning("%s Archive metadata will not be carried over.", e)
        return {}


# ----- WRITER -----

class ManifestWriter:
    """Serializes version metadata, file, add-on and archive tables for one run."""

    def __init__(self, config: WriterConfig, included: Iterable[FileEntry],
                 components: Iterable[ComponentEntry], now: Optional[datetime] = None):
        self.config = config
        self.included_paths = {f.path for f in included}
        self.components = list(components)
        self.now = now

    def render_version(self) -> str:
        if not self.config.apply_timestamp_on_version:
            return self.config.version
        return (self.now or datetime.now()).strftime(self.config.version)

    def write(self, path: str | Path, files: list[FileEntry],
              previous_files: Optional[Iterable[FileEntry]] = None,
              prior_archives: Optional[dict[str, str]] = None) -> Path:
        """
        Replace the version file at path.
        prior_archives is the [ArchivedFiles] table of the file being replaced; it
        supplies archive metadata for entries that were not recompressed this run.
        Raises ManifestWriteError on I/O failure.
        """
        path = Path(path)
        prior = prior_archives or {}
        cfg = self.config
        ini = IniFile()

        ini.set(DTA, "Version", self.render_version())
        if cfg.enable_extended_updater_features:
            if cfg.updater_version:
                ini.set(DTA, "UpdaterVersion", cfg.updater_version)
            if cfg.manual_download_url:
                ini.set(DTA, "ManualDownloadURL", cfg.manual_download_url)

        ini.add_section(FILE_VERSIONS)
        ini.add_section(ADDONS)
        if cfg.archiving:
            ini.add_section(ARCHIVED_FILES)

        for f in files:
            ini.set(FILE_VERSIONS, f.path, f.version_value())
            if cfg.archiving and f.archived:
                ini.set(ARCHIVED_FILES, f.path, self.archive_value(f, prior))

        if previous_files is not None:
            written = {f.path for f in files}
            for prev in previous_files:
                if prev.path in written or prev.path not in self.included_paths:
                    continue
                ini.set(FILE_VERSIONS, prev.path, prev.version_value())
                if cfg.archiving and prev.archived:
                    ini.set(ARCHIVED_FILES, prev.path, prev.archive_value())

        for c in self.components:
            ini.set(ADDONS, c.component_id, c.file.version_value())
            if cfg.archiving and c.file.archived:
                ini.set(ARCHIVED_FILES, c.path, self.archive_value(c.file, prior))

        try:
            if path.exists():
                path.unlink()
            ini.save(path)
        except OSError as e:
            raise ManifestWriteError(f"Could not save version file '{path.name}'. Error message: {e}") from e
        logger.debug("Wrote version file '%s' (%d files, %d add-ons).", path, len(files), len(self.components))
        return path

    @staticmethod
    def archive_value(entry: FileEntry, prior: dict[str, str]) -> str:
        """
        Fresh archive metadata when complete, else what the replaced manifest
        recorded for the same path, else whatever is known (sentinel "0" if nothing).
        """
        if entry.has_fresh_archive:
            return entry.archive_value()
        old_id, old_size = parse_archive_value(prior.get(entry.path, ""))
        if old_id and old_size > -1:
            return format_archive_value(old_id, old_size)
        return entry.archive_value()
