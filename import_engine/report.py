"""
import_engine.report - Structured result of one import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ImportResult:
    success: bool = True
    created: int = 0
    updated: int = 0
    linked: int = 0
    unlinked: int = 0
    malformed_skipped: int = 0
    rows_processed: int = 0                              # valid rows that reached upsert
    errors: list[str] = field(default_factory=list)
    message: Optional[str] = None

    def add_error(self, reason: str):
        self.errors.append(reason)

    def fail(self, reason: str):
        """Record an error that invalidates the whole run."""
        self.success = False
        self.errors.append(reason)

    def append_message(self, text: str):
        self.message = f"{self.message} {text}" if self.message else text

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "created": self.created,
            "updated": self.updated,
            "linked": self.linked,
            "unlinked": self.unlinked,
            "malformed_skipped": self.malformed_skipped,
            "rows_processed": self.rows_processed,
            "errors": self.errors,
            "message": self.message,
        }
