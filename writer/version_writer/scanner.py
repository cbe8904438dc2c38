from __future__ import annotations
import logging
from pathlib import Path

from tqdm import tqdm

from .config import WriterConfig
from .entries import ComponentEntry, FileEntry
from .errors import EnumerationError
from .fingerprint import hash_file, size_kb
from .io import is_hidden_or_system
from .log import tqdm_disable, tqdm_file

logger = logging.getLogger(__name__)


class Scanner:
    """Resolves [Include] and [AddOns] against the base directory into fingerprinted entries."""

    def __init__(self, base_dir: str | Path, config: WriterConfig):
        self.base = Path(base_dir)
        self.config = config

    # ----- files -----

    def scan_files(self) -> list[FileEntry]:
        """
        Ordered, de-duplicated entries for every included file.
        Raises EnumerationError when an include entry does not exist.
        """
        candidates: list[str] = []
        seen: set[str] = set()
        for inc in self.config.include_paths:
            self._process_path(inc, candidates, seen)
        return self._fingerprint(candidates)

    def _process_path(self, rel: str, out: list[str], seen: set[str]) -> None:
        full = self.base / rel if rel else self.base
        if full.is_dir():
            if self.config.exclude_hidden_and_system_files and rel and is_hidden_or_system(full):
                logger.warning("Included directory '%s' is hidden or a system directory. Skipping.", rel)
                return
            logger.info("Included path '%s' is a directory. Including all files in it.", rel or ".")
            children = sorted(full.iterdir(), key=lambda c: c.name)
            for child in children:
                if not child.is_file():
                    continue
                child_rel = f"{rel}/{child.name}" if rel else child.name
                if self.config.exclude_hidden_and_system_files and is_hidden_or_system(child):
                    logger.warning("Included file '%s' is hidden or a system file. Skipping.", child_rel)
                    continue
                self._add_file(child_rel, out, seen)
            if self.config.recursive_directory_search:
                for child in children:
                    if child.is_dir():
                        self._process_path(f"{rel}/{child.name}" if rel else child.name, out, seen)
            return
        self._add_file(rel, out, seen)

    def _add_file(self, rel: str, out: list[str], seen: set[str]) -> None:
        if not (self.base / rel).is_file():
            raise EnumerationError(f"Included file '{rel}' does not exist. Aborting.")
        if rel in seen:
            return
        if self._in_excluded_directory(rel):
            logger.warning("Included file '%s' is in an excluded directory. Skipping.", rel)
            return
        if rel in self.config.exclude_files:
            logger.warning("Included file '%s' is on exclude list. Skipping.", rel)
            return
        seen.add(rel)
        out.append(rel)

    def _in_excluded_directory(self, rel: str) -> bool:
        return any(rel.startswith(d) for d in self.config.exclude_directories)

    def _fingerprint(self, rels: list[str]) -> list[FileEntry]:
        files: list[FileEntry] = []
        with tqdm(total=len(rels), desc="Hashing files", unit="file", file=tqdm_file(), disable=tqdm_disable()) as bar:
            for rel in rels:
                p = self.base / rel
                logger.debug(rel)
                files.append(FileEntry(
                    path=rel,
                    content_id=hash_file(p, self.config.hash_algorithm),
                    size_kb=size_kb(p),
                    archived=self.config.archiving and rel in self.config.archive_files,
                ))
                bar.update(1)
        return files

    # ----- add-ons -----

    def scan_components(self) -> list[ComponentEntry]:
        """Raises EnumerationError when an add-on file does not exist."""
        components: list[ComponentEntry] = []
        for component_id, rel in self.config.components.items():
            p = self.base / rel
            if not p.is_file():
                raise EnumerationError(f"Custom component file '{p}' does not exist. Aborting.")
            logger.info("%s=%s", component_id, rel)
            components.append(ComponentEntry(
                component_id=component_id,
                file=FileEntry(
                    path=rel,
                    content_id=hash_file(p, self.config.hash_algorithm),
                    size_kb=size_kb(p),
                    archived=self.config.archiving and rel in self.config.archive_files,
                ),
            ))
        return components
