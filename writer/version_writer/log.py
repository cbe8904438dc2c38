from __future__ import annotations
import io
import logging
import os
import sys
from pathlib import Path

from tqdm import tqdm

_PKG_LOGGER = "version_writer"


class TqdmHandler(logging.Handler):
    """
    Console handler that keeps progress bars intact:
    - Prefer tqdm.write.
    - Fall back to plain print, even if sys.stderr is None.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:
            self.handleError(record)
            return
        try:
            tqdm.write(msg, file=tqdm_file())
            return
        except (OSError, ValueError, AttributeError):
            pass
        if getattr(sys, "stderr", None) is not None:
            print(msg, file=sys.stderr)
        else:
            print(msg)


def setup_logging(log_file: str | Path | None = None, verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure the package logger: console through tqdm, optional log file."""
    logger = logging.getLogger(_PKG_LOGGER)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = False

    console = TqdmHandler()
    console.setLevel(logging.WARNING if quiet else (logging.DEBUG if verbose else logging.INFO))
    console.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console)

    if log_file:
        fh = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        fh.setLevel(logging.DEBUG if verbose else logging.INFO)
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
        logger.addHandler(fh)

    return logger


def tqdm_file():
    """
    File-like object for tqdm to write to.
    Without a usable stderr (frozen/windowed builds) fall back to a sink.
    """
    f = getattr(sys, "stderr", None)
    return f if (f is not None and hasattr(f, "write")) else io.StringIO()


def tqdm_disable() -> bool:
    """
    Disable tqdm when there is no real stderr or when explicitly requested.
    Env override: VERSIONWRITER_TQDM=0 forces enable, =1 forces disable.
    """
    env = os.environ.get("VERSIONWRITER_TQDM")
    if env == "0":
        return False
    if env == "1":
        return True
    f = getattr(sys, "stderr", None)
    return not (f is not None and hasattr(f, "write"))
