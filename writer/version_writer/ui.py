from __future__ import annotations
from pathlib import Path

_RED = "\033[31m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"


def warn(text: str, color: str = _RED) -> None:
    print(f"{color}{text}{_RESET}")


def pause(text: str) -> None:
    try:
        input(text)
    except EOFError:
        pass


def ask_yes_no(question: str) -> bool:
    while True:
        try:
            ans = input(f"{question} [y/n]: ").strip().lower()
        except EOFError:
            return False
        if ans in ("y", "yes"):
            return True
        if ans in ("n", "no"):
            return False


def confirm_overwrite(directory: Path) -> bool:
    print("")
    warn(f"Directory '{directory.name}' already exists and is not empty.", _YELLOW)
    return ask_yes_no("Do you want to remove it and ALL files & subdirectories within before copying files?")


def retry_prompt(attempts_left: int) -> None:
    print("")
    pause(f"Press Enter to retry. ({attempts_left} attempts left)")
