"""Ingest utilities shared by CLI commands and the import API.

Currently exposes a single helper that reads a statement file into lines and
rejects inputs that cannot possibly hold a statement (missing or empty file)
before any parsing happens.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from .adapters.piraeus_tsv import PiraeusFormatError


class EmptyStatementError(PiraeusFormatError):
    """The statement file exists but has no content."""


def read_statement_lines(path: str | PathLike[str]) -> list[str]:
    """Read ``path`` as UTF-8 text and return its lines without terminators.

    Raises ``FileNotFoundError`` for a missing file and
    :class:`EmptyStatementError` when the file has no lines.
    """

    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    # utf-8-sig: e-banking exports sometimes carry a BOM.
    lines = p.read_text(encoding="utf-8-sig").splitlines()
    if not lines:
        raise EmptyStatementError("File is empty")
    return lines


__all__ = ["EmptyStatementError", "read_statement_lines"]
