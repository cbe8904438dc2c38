# version_writer/paths.py
from __future__ import annotations

# ---- Inputs (inside the base directory) ----
CONFIG_FILENAME: str = "versionconfig.ini"
LOG_FILENAME: str    = "version_writer.log"

# ---- Outputs ----
MANIFEST_FILENAME: str = "version"
BASELINE_FILENAME: str = "version_base"
COPY_DIRECTORY: str    = "VersionWriter-CopiedFiles"

# ---- Side artifacts ----
ARCHIVE_SUFFIXES: dict[str, str] = {
    "lzma": ".lzma",
    "zstd": ".zst",
}

# Sentinel written to [ArchivedFiles] when no archive metadata exists
ARCHIVE_SENTINEL: str = "0"


def reference_manifest_name(only_changed: bool) -> str:
    """Manifest the next diff is computed against."""
    return BASELINE_FILENAME if only_changed else MANIFEST_FILENAME


__all__ = [
    "CONFIG_FILENAME", "LOG_FILENAME",
    "MANIFEST_FILENAME", "BASELINE_FILENAME", "COPY_DIRECTORY",
    "ARCHIVE_SUFFIXES", "ARCHIVE_SENTINEL",
    "reference_manifest_name",
]
