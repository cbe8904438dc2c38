"""
pytest configuration for the version writer tests.

Puts writer/ on sys.path so `version_writer` imports without installing,
and provides a throwaway distribution directory.
"""

import logging
import sys
from pathlib import Path

import pytest

src_path = Path(__file__).parent.parent / "writer"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from version_writer.io import RetryPolicy  # noqa: E402


@pytest.fixture(autouse=True)
def _quiet_progress(monkeypatch):
    monkeypatch.setenv("VERSIONWRITER_TQDM", "1")
    yield
    # cli tests install handlers on the package logger; undo that for caplog
    pkg = logging.getLogger("version_writer")
    for h in list(pkg.handlers):
        pkg.removeHandler(h)
        h.close()
    pkg.propagate = True
    pkg.setLevel(logging.NOTSET)


class Dist:
    """A base directory with files and a versionconfig.ini."""

    def __init__(self, root: Path):
        self.root = root

    def write(self, rel: str, data: bytes | str = b"") -> Path:
        p = self.root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            data = data.encode("utf-8")
        p.write_bytes(data)
        return p

    def config(self, version="1.0.0", include=("a.txt", "b.txt"), options=None,
               exclude_files=(), exclude_dirs=(), archive=(), addons=None, extra="") -> Path:
        lines = ["[Version]", version, ""]
        if options:
            lines.append("[Options]")
            lines += [f"{k}={v}" for k, v in options.items()]
            lines.append("")
        lines.append("[Include]")
        lines += list(include)
        lines.append("")
        for name, items in (("ExcludeFiles", exclude_files), ("ExcludeDirectories", exclude_dirs),
                            ("ArchiveFiles", archive)):
            if items:
                lines.append(f"[{name}]")
                lines += list(items)
                lines.append("")
        if addons:
            lines.append("[AddOns]")
            lines += [f"{k}={v}" for k, v in addons.items()]
            lines.append("")
        lines.append(extra)
        return self.write("versionconfig.ini", "\n".join(lines))

    def read_ini(self, rel: str) -> dict[str, dict[str, str]]:
        import configparser
        cp = configparser.ConfigParser(interpolation=None, delimiters=("=",))
        cp.optionxform = str
        cp.read(self.root / rel, encoding="utf-8")
        return {s: dict(cp.items(s)) for s in cp.sections()}


@pytest.fixture
def dist(tmp_path) -> Dist:
    return Dist(tmp_path)


@pytest.fixture
def no_wait() -> RetryPolicy:
    return RetryPolicy(attempts=3, delay=0)
