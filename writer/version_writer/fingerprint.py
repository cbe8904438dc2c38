from __future__ import annotations
import hashlib
from pathlib import Path

import xxhash  # very fast non-crypto hash

_CHUNK = 1024 * 1024


def _xxh3(p: Path) -> str:
    h = xxhash.xxh3_128()
    with p.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def _md5(p: Path) -> str:
    # legacy updater format: decimal value of every digest byte, concatenated
    h = hashlib.md5()
    with p.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return "".join(str(b) for b in h.digest())


_HASHERS = {
    "xxh3": _xxh3,
    "md5": _md5,
}


def hash_file(path: str | Path, algorithm: str = "xxh3") -> str:
    """Content fingerprint of a file; used for change detection only."""
    try:
        hasher = _HASHERS[algorithm]
    except KeyError:
        raise ValueError(f"unknown hash algorithm: {algorithm}") from None
    return hasher(Path(path))


def size_kb(path: str | Path) -> int:
    """Whole kilobytes, truncated (1023 bytes -> 0)."""
    return Path(path).stat().st_size // 1024
