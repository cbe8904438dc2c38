from __future__ import annotations


class VersionWriterError(Exception):
    """Base for every expected failure of a generation run."""
    pass


# ----- validation (abort before any side effect) -----

class ConfigError(VersionWriterError):
    """versionconfig.ini is missing, unreadable or incomplete."""
    pass


class EnumerationError(VersionWriterError):
    """An included path or add-on file does not exist."""
    pass


# ----- operational (abort the run, no rollback) -----

class FileOperationError(VersionWriterError):
    """Copying, compressing or removing files failed."""
    pass


class ManifestWriteError(VersionWriterError):
    """A manifest could not be saved."""
    pass


# ----- advisory -----

class ManifestReadError(VersionWriterError):
    """A previous manifest exists but cannot be parsed."""
    pass
