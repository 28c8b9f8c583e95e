"""Coloured console output for the interactive chat."""

from __future__ import annotations

import sys
from enum import Enum
from typing import Any, TextIO

RESET = "\033[0m"


class AnsiColors(Enum):
    """
    ANSI color codes for terminal output.
    """

    GREEN = "\033[92m"
    CYAN = "\033[96m"
    BLUE = "\033[34m"
    BRIGHT_BLUE = "\033[94m"
    RED = "\033[91m"


def colored(text: str, color: AnsiColors) -> str:
    return f"{color.value}{text}{RESET}"


def host(*parts: Any, stream: TextIO | None = None) -> None:
    print(colored("[HOST]", AnsiColors.GREEN), *parts, file=stream or sys.stdout)


def assistant(text: str, *, stream: TextIO | None = None) -> None:
    print(colored("[ASSISTANT]", AnsiColors.BRIGHT_BLUE), text, file=stream or sys.stdout)


def error(text: str, *, stream: TextIO | None = None) -> None:
    print(colored("[ERROR]", AnsiColors.RED), text, file=stream or sys.stdout)


def user_prompt() -> str:
    return colored("[USER] ", AnsiColors.CYAN)


def thinking(*, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    out.write(colored("Thinking... ", AnsiColors.BLUE))
    out.flush()


def clear_line(*, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    out.write("\r\033[2K")
    out.flush()
