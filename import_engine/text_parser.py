"""
import_engine.text_parser - Low-level reading of Orange Book flat files.

Responsibilities:
  • BOM removal (UTF-8 / UTF-8-SIG)
  • Header line removal (always the first non-blank line)
  • Splitting on the tilde delimiter with a strict column count
"""

from __future__ import annotations

import logging

import config
from import_engine.report import ImportResult

logger = logging.getLogger(__name__)


def decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        # Strip UTF-8 BOM
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.warning(
                f"Content is not valid UTF-8 (first bad byte at offset {exc.start}); "
                f"undecodable bytes replaced with U+FFFD"
            )
            return raw.decode("utf-8", errors="replace")
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw


def parse_lines(
    raw: str | bytes,
    expected_columns: int,
    result: ImportResult,
    *,
    delimiter: str = config.FIELD_DELIMITER,
) -> list[tuple[int, list[str]]]:
    """
    Split file content into validated rows.

    Returns ``[(line_number, fields), ...]`` in file order, line numbers
    1-based.  Rows with the wrong number of fields are dropped and
    counted on ``result.malformed_skipped``; blank lines are ignored.
    """
    rows: list[tuple[int, list[str]]] = []
    header_seen = False

    for line_no, line in enumerate(decode(raw).split("\n"), start=1):
        line = line.rstrip("\r")
        if not line.strip():
            continue
        if not header_seen:
            header_seen = True
            continue

        fields = line.split(delimiter)
        if len(fields) != expected_columns:
            result.malformed_skipped += 1
            logger.warning(
                f"Skipping malformed row {line_no}: expected "
                f"{expected_columns} columns, got {len(fields)}"
            )
            continue

        rows.append((line_no, fields))

    return rows
