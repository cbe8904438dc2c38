from __future__ import annotations
import enum
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .config import WriterConfig
from .copier import copy_changed
from .diff import changed_components, changed_files
from .entries import ComponentEntry, FileEntry
from .errors import FileOperationError, ManifestReadError, VersionWriterError
from .io import RetryPolicy, prepare_copy_directory, safe_replace
from .manifest import Manifest, ManifestWriter, load_prior_archives, read_manifest
from .paths import BASELINE_FILENAME, MANIFEST_FILENAME, reference_manifest_name
from .scanner import Scanner

logger = logging.getLogger(__name__)


class State(enum.Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    READY = "ready"
    GENERATED = "generated"
    FAILED = "failed"


@dataclass
class GenerationResult:
    ok: bool
    message: str = ""
    changed_files: list[FileEntry] = field(default_factory=list)
    changed_components: list[ComponentEntry] = field(default_factory=list)
    wrote_manifest: bool = False


class VersionWriter:
    """
    Runs one generation: config -> enumerate -> diff -> copy/archive -> manifest.

    Expected failures never escape; they end in State.FAILED and a
    GenerationResult with ok=False and a readable message.
    """

    def __init__(self, base_dir: str | Path,
                 confirm_overwrite: Optional[Callable[[Path], bool]] = None,
                 on_retry: Optional[Callable[[int], None]] = None,
                 retry_policy: RetryPolicy = RetryPolicy(),
                 sleep: Callable[[float], None] = time.sleep):
        self.base = Path(base_dir)
        self.confirm_overwrite = confirm_overwrite
        self.on_retry = on_retry
        self.retry_policy = retry_policy
        self._sleep = sleep

        self.state = State.UNCONFIGURED
        self.error = ""
        self.config: Optional[WriterConfig] = None
        self.files: list[FileEntry] = []
        self.components: list[ComponentEntry] = []

    def _fail(self, msg: str) -> GenerationResult:
        logger.error(msg)
        self.state = State.FAILED
        self.error = msg
        return GenerationResult(ok=False, message=msg)

    # ----- Unconfigured -> Configured -----

    def configure(self) -> bool:
        try:
            self.config = WriterConfig.load(self.base)
        except VersionWriterError as e:
            self._fail(str(e))
            return False
        self.state = State.CONFIGURED
        return True

    # ----- Configured -> Ready -----

    def prepare(self) -> bool:
        if self.state is not State.CONFIGURED:
            self._fail("Cannot enumerate files before the configuration is parsed.")
            return False
        scanner = Scanner(self.base, self.config)
        try:
            logger.info("Checking directories & files in [Include].")
            self.files = scanner.scan_files()
            logger.info("Checking custom components.")
            self.components = scanner.scan_components()
        except VersionWriterError as e:
            self._fail(str(e))
            return False
        except OSError as e:
            self._fail(f"Could not read included files: {e}")
            return False
        self.state = State.READY
        return True

    # ----- Ready -> Generated / Failed -----

    def load_previous(self) -> Optional[Manifest]:
        """Reference manifest for the diff; None (with a warning) when missing or unreadable."""
        path = self.base / reference_manifest_name(self.config.include_only_changed_files)
        try:
            previous = read_manifest(path)
        except ManifestReadError as e:
            logger.warning("%s Treating every file as changed.", e)
            return None
        if previous is None:
            logger.warning("Could not parse files from version file '%s'.", path)
        return previous

    def generate(self) -> GenerationResult:
        if self.state is not State.READY:
            return self._fail("Cannot generate version file because version file writer is not initialized.")
        try:
            return self._generate()
        except VersionWriterError as e:
            return self._fail(str(e))
        except OSError as e:
            return self._fail(f"File operation failed: {e}")

    def _generate(self) -> GenerationResult:
        cfg = self.config
        previous = self.load_previous()

        logger.info("Checking for updated files.")
        files = changed_files(self.files, previous.files if previous else None)
        logger.info("Checking for updated custom components.")
        components = changed_components(self.components, previous.components if previous else None)

        if not files and not components:
            msg = "No updated files or custom components found. No files will be copied & no version files will be written."
            logger.warning(msg)
            self.state = State.GENERATED
            return GenerationResult(ok=True, message=msg)

        directory: Optional[Path] = None
        if not cfg.no_copy_mode:
            directory = self.base / cfg.copy_directory
            logger.info("Copying updated files to subdirectory %s.", cfg.copy_directory)
            prepare_copy_directory(directory, self.confirm_overwrite, self.retry_policy,
                                   on_retry=self.on_retry, sleep=self._sleep)
            copy_changed(self.base, directory, files, [c.file for c in components], cfg)

        logger.info("Writing version file.")
        writer = ManifestWriter(cfg, self.files, self.components)
        primary = self.base / MANIFEST_FILENAME
        if cfg.include_only_changed_files:
            prev_files = list(previous.files.values()) if previous else []
            writer.write(primary, files, previous_files=prev_files, prior_archives=load_prior_archives(primary))
            baseline = self.base / BASELINE_FILENAME
            writer.write(baseline, self.files, prior_archives=load_prior_archives(baseline))
        else:
            writer.write(primary, self.files, prior_archives=load_prior_archives(primary))

        if directory is not None and directory.is_dir():
            try:
                safe_replace(primary, directory / MANIFEST_FILENAME)
            except OSError as e:
                raise FileOperationError(f"Could not copy version file to '{directory.name}': {e}") from e

        logger.info("Finished generating new version file.")
        self.state = State.GENERATED
        return GenerationResult(ok=True, message="Finished generating new version file.",
                                changed_files=files, changed_components=components,
                                wrote_manifest=True)

    def run(self) -> GenerationResult:
        if not self.configure():
            return GenerationResult(ok=False, message=self.error)
        if not self.prepare():
            return GenerationResult(ok=False, message=self.error)
        return self.generate()
