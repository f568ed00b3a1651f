"""
import_engine.errors - Import error taxonomy and diagnostic formatting.

RowError          → one row could not be imported; the run continues.
FieldCoercionError→ a RowError raised by a normalizer.
ImportCancelled   → cooperative cancellation observed at a row boundary.
FatalImportError  → the run as a whole failed; nothing was committed.
"""

from __future__ import annotations

CHAIN_SEPARATOR = " → "


class RowError(Exception):
    """Raised when a row cannot be imported."""
    pass


class FieldCoercionError(RowError):
    """Raised when a raw field cannot be turned into the required value."""

    def __init__(self, column: str, value: str | None, reason: str):
        super().__init__(f"{column}: {reason} (got {value!r})")
        self.column = column
        self.value = value


class ImportCancelled(Exception):
    """Raised between rows when the caller asked the run to stop."""
    pass


class FatalImportError(RuntimeError):
    """Raised when the session cannot be opened or the batch cannot be committed."""
    pass


def format_exception_chain(exc: BaseException) -> str:
    """
    Flatten an exception and its underlying causes into one line.

    Messages are ordered outermost first and joined with " → ".
    Explicit causes (``raise ... from``) are followed first, then
    implicit context unless it was suppressed.  An exception with an
    empty message contributes its class name instead.
    """
    messages: list[str] = []
    seen: set[int] = set()
    current: BaseException | None = exc

    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current)
        messages.append(text if text else type(current).__name__)

        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None

    return CHAIN_SEPARATOR.join(messages)
