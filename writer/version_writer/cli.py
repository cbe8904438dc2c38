from __future__ import annotations
import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from . import ui
from .log import setup_logging
from .paths import LOG_FILENAME
from .writer import VersionWriter


def _app_version() -> str:
    try:
        return version("version-writer")
    except PackageNotFoundError:
        return "dev"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="version-writer",
                                description="Writes version files for the client updater")
    p.add_argument("base_dir", nargs="?", default=".", help="Directory to generate the version file in")
    p.add_argument("-l", "--log", action="store_true", help=f"Write {LOG_FILENAME} in the base directory")
    p.add_argument("-q", "--quiet", action="store_true", help="Only print warnings and errors")
    p.add_argument("-s", "--suppress-inputs", "-y", "--yes", dest="suppress", action="store_true",
                   help="Never prompt; assume yes")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug output")
    return p


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    base = Path(args.base_dir).resolve()
    if not base.is_dir():
        parser.error(f"base directory does not exist: {base}")

    title = f"Version File Writer v.{_app_version()}"
    print(title)
    print("Base directory:", base)
    if not args.suppress:
        print("")
        ui.warn("WARNING: Continuing will generate new version info files and overwrite existing ones in the working directory.")
        ui.pause("Press Enter to continue...")

    log = setup_logging(base / LOG_FILENAME if args.log else None, verbose=args.verbose, quiet=args.quiet)
    log.debug(title)
    log.debug("Base directory: %s", base)

    writer = VersionWriter(
        base,
        confirm_overwrite=None if args.suppress else ui.confirm_overwrite,
        on_retry=None if args.suppress else ui.retry_prompt,
    )
    result = writer.run()

    if not args.suppress:
        print("")
        ui.pause("Press Enter to exit...")
    return 0 if result.ok else 1
