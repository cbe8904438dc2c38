from __future__ import annotations
import configparser
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError
from .paths import CONFIG_FILENAME, COPY_DIRECTORY, ARCHIVE_SUFFIXES

logger = logging.getLogger(__name__)

HASH_ALGORITHMS = ("xxh3", "md5")

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def normalize_path(p: str) -> str:
    """Relative path as used for manifest keys: forward slashes, no ./ or edge slashes."""
    p = p.strip().replace("\\", "/")
    while p.startswith("./"):
        p = p[2:]
    p = p.strip("/")
    return "" if p == "." else p


def normalize_dir_prefix(p: str) -> str:
    """Like normalize_path, but a trailing slash is kept: 'Logs/' matches only that directory."""
    raw = p.strip().replace("\\", "/")
    n = normalize_path(raw)
    return n + "/" if n and raw.endswith("/") else n


class IniFile:
    """
    Ordered INI store shared by versionconfig.ini and the version manifests.

    List sections keep their items as key *names* ([Include], [ExcludeFiles]…),
    data sections keep them as values ([FileVersions], [AddOns]…).
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self._cp = configparser.ConfigParser(
            allow_no_value=True,
            delimiters=("=",),
            comment_prefixes=(";", "#"),
            interpolation=None,
            strict=False,
        )
        self._cp.optionxform = str  # keys are paths: keep case
        if self.path and self.path.is_file():
            with self.path.open("r", encoding="utf-8-sig") as f:
                self._cp.read_file(f, source=str(self.path))

    def section_exists(self, section: str) -> bool:
        return self._cp.has_section(section)

    def keys(self, section: str) -> list[str]:
        if not self._cp.has_section(section):
            return []
        return list(self._cp.options(section))

    def pairs(self, section: str) -> list[tuple[str, str]]:
        if not self._cp.has_section(section):
            return []
        return [(k, v or "") for k, v in self._cp.items(section)]

    def get(self, section: str, key: str, default: str = "") -> str:
        if not self._cp.has_option(section, key):
            return default
        v = self._cp.get(section, key)
        return default if v is None else v

    def get_bool(self, section: str, key: str, default: bool = False) -> bool:
        v = self.get(section, key, "").strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
        return default

    def first_key(self, section: str) -> str:
        keys = self.keys(section)
        return keys[0].strip() if keys else ""

    def add_section(self, section: str) -> None:
        if not self._cp.has_section(section):
            self._cp.add_section(section)

    def set(self, section: str, key: str, value: str) -> None:
        self.add_section(section)
        self._cp.set(section, key, value)

    def save(self, path: str | Path | None = None) -> None:
        out = Path(path) if path else self.path
        if out is None:
            raise ValueError("no path to save to")
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("w", encoding="utf-8", newline="\n") as f:
            self._cp.write(f, space_around_delimiters=False)


@dataclass
class WriterConfig:
    """Parsed versionconfig.ini: one generation request."""
    version: str
    include_paths: list[str]
    exclude_files: set[str] = field(default_factory=set)
    exclude_directories: list[str] = field(default_factory=list)
    archive_files: set[str] = field(default_factory=set)
    components: dict[str, str] = field(default_factory=dict)

    updater_version: str = ""
    manual_download_url: str = ""

    enable_extended_updater_features: bool = False
    recursive_directory_search: bool = False
    include_only_changed_files: bool = False
    exclude_hidden_and_system_files: bool = True
    no_copy_mode: bool = False
    apply_timestamp_on_version: bool = False
    copy_archived_original_files: bool = False

    copy_directory: str = COPY_DIRECTORY
    hash_algorithm: str = "xxh3"
    archive_format: str = "lzma"

    @property
    def archiving(self) -> bool:
        """Archives are produced and tracked only with extended features in copy mode."""
        return self.enable_extended_updater_features and not self.no_copy_mode

    @property
    def archive_suffix(self) -> str:
        return ARCHIVE_SUFFIXES[self.archive_format]

    @staticmethod
    def load(base_dir: str | Path) -> "WriterConfig":
        path = Path(base_dir) / CONFIG_FILENAME
        if not path.is_file():
            raise ConfigError(f"Configuration file '{path}' does not exist.")

        logger.info("Parsing configuration file '%s'.", path)
        try:
            ini = IniFile(path)
        except (configparser.Error, UnicodeDecodeError) as e:
            raise ConfigError(f"Configuration file '{path}' could not be parsed: {e}") from e

        version = ini.first_key("Version")
        if not version:
            raise ConfigError("Configuration file does not declare [Version].")

        include = [normalize_path(k) for k in ini.keys("Include")]
        if not include:
            raise ConfigError(f"Configuration file '{path}' does not list any files or directories in [Include].")

        cfg = WriterConfig(
            version=version,
            include_paths=include,
            exclude_files={normalize_path(k) for k in ini.keys("ExcludeFiles")},
            exclude_directories=[d for d in (normalize_dir_prefix(k) for k in ini.keys("ExcludeDirectories")) if d],
            archive_files={normalize_path(k) for k in ini.keys("ArchiveFiles")},
            components={k: normalize_path(v) for k, v in ini.pairs("AddOns")},
        )
        cfg._parse_options(ini)
        return cfg

    def _parse_options(self, ini: IniFile) -> None:
        o = "Options"
        self.enable_extended_updater_features = ini.get_bool(o, "EnableExtendedUpdaterFeatures", False)
        if self.enable_extended_updater_features:
            logger.info("Option enabled: EnableExtendedUpdaterFeatures - extended features enabled.")

        self.recursive_directory_search = ini.get_bool(o, "RecursiveDirectorySearch", False)
        if self.recursive_directory_search:
            logger.info("Option enabled: RecursiveDirectorySearch - search directories recursively.")

        self.include_only_changed_files = ini.get_bool(o, "IncludeOnlyChangedFiles", False)
        if self.include_only_changed_files:
            logger.info("Option enabled: IncludeOnlyChangedFiles - only include info for changed files.")

        self.exclude_hidden_and_system_files = ini.get_bool(o, "ExcludeHiddenAndSystemFiles", True)
        if not self.exclude_hidden_and_system_files:
            logger.info("NOTE: exclusion of hidden and system files has been disabled.")

        self.no_copy_mode = ini.get_bool(o, "NoCopyMode", False)
        if self.no_copy_mode:
            logger.info("Option enabled: NoCopyMode - no files will be copied, archived files are disabled.")

        self.apply_timestamp_on_version = ini.get_bool(o, "ApplyTimestampOnVersion", False)
        if self.apply_timestamp_on_version:
            logger.info("Option enabled: ApplyTimestampOnVersion - version is a strftime pattern.")

        if self.archiving:
            self.copy_archived_original_files = ini.get_bool(o, "CopyArchivedOriginalFiles", False)
            if self.copy_archived_original_files:
                logger.info("Option enabled: CopyArchivedOriginalFiles - originals of archived files are copied too.")

        self.copy_directory = ini.get(o, "CopyDirectory", "").strip() or COPY_DIRECTORY

        self.hash_algorithm = ini.get(o, "HashAlgorithm", "").strip().lower() or "xxh3"
        if self.hash_algorithm not in HASH_ALGORITHMS:
            raise ConfigError(f"Unknown HashAlgorithm '{self.hash_algorithm}' (expected one of {', '.join(HASH_ALGORITHMS)}).")

        self.archive_format = ini.get(o, "ArchiveFormat", "").strip().lower() or "lzma"
        if self.archive_format not in ARCHIVE_SUFFIXES:
            raise ConfigError(f"Unknown ArchiveFormat '{self.archive_format}' (expected one of {', '.join(ARCHIVE_SUFFIXES)}).")

        if self.enable_extended_updater_features:
            self.updater_version = ini.first_key("UpdaterVersion")
            if not self.updater_version:
                logger.warning("Configuration file does not declare [UpdaterVersion]. It will not be written to version file.")
            self.manual_download_url = ini.first_key("ManualDownloadURL")
            if not self.manual_download_url:
                logger.warning("Configuration file does not declare [ManualDownloadURL]. It will not be written to version file.")
