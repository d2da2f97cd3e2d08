"""Module: load Intcode program text into a list of integers.

Program text is a comma-separated list of integers; whitespace around each
token (including a trailing newline) is ignored.
"""

from __future__ import annotations

# ruff: noqa: A005
import re
from pathlib import Path

_INT_RE = re.compile(r"^[-+]?\d+$")


class ParseError(ValueError):
    """Raised when program text cannot be turned into integers."""

    pass


def tokenize(source: str) -> list[str]:
    """Split program text on commas and strip every token."""
    return [tok.strip() for tok in source.split(",")]


def parse(source: str) -> list[int]:
    """Parse program text into a list of integers.

    Raises ParseError on an empty source or a non-integer token.
    """
    if not source.strip():
        err = "empty program"
        raise ParseError(err)

    program: list[int] = []
    for i, tok in enumerate(tokenize(source)):
        if not _INT_RE.fullmatch(tok):
            err = f"token {i} is not an integer: {tok!r}"
            raise ParseError(err)
        program.append(int(tok))
    return program


def load_program(path: str | Path) -> list[int]:
    """Read a program file and parse it."""
    p = Path(path)
    try:
        src = p.read_text(encoding="utf-8")
    except OSError as e:
        err = f"Failed to read program {path}: {e}"
        raise ParseError(err) from e
    return parse(src)
