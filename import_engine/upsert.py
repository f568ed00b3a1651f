"""
import_engine.upsert - Natural-key create-or-update.

Two explicit steps per candidate:

    1. look the record up by its full natural key
    2. create it when absent, overwrite its payload when present

Nothing is flushed or committed here; the orchestrator owns the
transaction so a failed run can be rolled back as a whole.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

CREATED = "created"
UPDATED = "updated"


@dataclass
class Candidate:
    """One normalized row, ready to be upserted."""
    key: dict[str, Any]
    payload: dict[str, Any] = field(default_factory=dict)
    parent_key: Optional[tuple[str, str, str]] = None


class UpsertEngine:
    """
    Upserts instances of one model class within one session.

    Records created or fetched since the last flush are cached by key,
    so a key that repeats later in the same file updates the instance
    already pending in the session instead of inserting a second one.
    Once flushed, a repeat is found again by the SELECT in find().
    """

    def __init__(self, model, key_columns: tuple[str, ...]):
        self.model = model
        self.key_columns = key_columns
        self._seen: dict[tuple, Any] = {}

    def find(self, session: Session, key: dict[str, Any]):
        ident = tuple(key[col] for col in self.key_columns)
        if ident in self._seen:
            return self._seen[ident]

        stmt = select(self.model).where(
            *(getattr(self.model, col) == key[col] for col in self.key_columns)
        )
        record = session.execute(stmt).scalar_one_or_none()
        if record is not None:
            self._seen[ident] = record
        return record

    def forget_flushed(self):
        """Drop cached records; call right after session.flush()."""
        self._seen.clear()

    @property
    def cached(self) -> int:
        return len(self._seen)

    def upsert(self, session: Session, candidate: Candidate) -> str:
        """Apply one candidate; returns CREATED or UPDATED."""
        record = self.find(session, candidate.key)

        if record is None:
            record = self.model(**candidate.key, **candidate.payload)
            session.add(record)
            self._seen[tuple(candidate.key[c] for c in self.key_columns)] = record
            return CREATED

        for attr, value in candidate.payload.items():
            setattr(record, attr, value)
        return UPDATED
