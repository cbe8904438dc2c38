from __future__ import annotations
import lzma
import shutil
from pathlib import Path

import zstandard

_CHUNK = 1024 * 1024

_LZMA_FILTERS = [{"id": lzma.FILTER_LZMA1, "preset": 6}]


# ----- LZMA -----

def _lzma_compress(src: Path, dst: Path) -> None:
    # legacy .lzma ("alone") stream: size field left unknown, data closed by an end marker
    comp = lzma.LZMACompressor(format=lzma.FORMAT_ALONE, filters=_LZMA_FILTERS)
    with src.open("rb") as fin, dst.open("wb") as fout:
        for chunk in iter(lambda: fin.read(_CHUNK), b""):
            fout.write(comp.compress(chunk))
        fout.write(comp.flush())


def _lzma_decompress(src: Path, dst: Path) -> None:
    decomp = lzma.LZMADecompressor(format=lzma.FORMAT_ALONE)
    with src.open("rb") as fin, dst.open("wb") as fout:
        for chunk in iter(lambda: fin.read(_CHUNK), b""):
            fout.write(decomp.decompress(chunk))
            if decomp.eof:
                break


# ----- ZSTD -----

def _zstd_compress(src: Path, dst: Path) -> None:
    cctx = zstandard.ZstdCompressor(level=19, write_content_size=True)
    with src.open("rb") as fin, dst.open("wb") as fout:
        cctx.copy_stream(fin, fout, size=src.stat().st_size)


def _zstd_decompress(src: Path, dst: Path) -> None:
    dctx = zstandard.ZstdDecompressor()
    with src.open("rb") as fin, dst.open("wb") as fout:
        dctx.copy_stream(fin, fout)


_CODECS = {
    "lzma": (_lzma_compress, _lzma_decompress),
    "zstd": (_zstd_compress, _zstd_decompress),
}


def _codec(fmt: str):
    try:
        return _CODECS[fmt]
    except KeyError:
        raise ValueError(f"unknown archive format: {fmt}") from None


def compress_file(src: str | Path, dst: str | Path, fmt: str = "lzma") -> Path:
    """Compress src into dst (parents created). Raises OSError on I/O failure."""
    compress, _ = _codec(fmt)
    src, dst = Path(src), Path(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_name(dst.name + ".part")
    try:
        compress(src, tmp)
        tmp.replace(dst)
    finally:
        if tmp.exists():
            tmp.unlink()
    return dst


def decompress_file(src: str | Path, dst: str | Path, fmt: str = "lzma") -> Path:
    """Inverse of compress_file, used to verify that a shipped archive restores its source."""
    _, decompress = _codec(fmt)
    src, dst = Path(src), Path(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)
    decompress(src, dst)
    return dst


def copy_file(src: str | Path, dst: str | Path) -> Path:
    dst = Path(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)
    return dst
