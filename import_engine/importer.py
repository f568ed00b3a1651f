"""
import_engine.importer - Top-level orchestrator.

Coordinates feed decoding → normalizers → product resolver → upsert
engine → single commit, and fills in a structured ImportResult.

One session per run, opened through db.session_scope() and closed on
every exit path.  Counters are moved onto the caller's result only once
the commit has gone through, so a cancelled or failed run reports no
creates/updates.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import config
from db.engine import session_scope
from import_engine import feeds
from import_engine.errors import (
    FatalImportError, ImportCancelled, format_exception_chain,
)
from import_engine.feeds import Feed
from import_engine.report import ImportResult
from import_engine.resolver import ProductResolver
from import_engine.text_parser import decode
from import_engine.upsert import CREATED, UpsertEngine

logger = logging.getLogger(__name__)


def run_import(
    feed: Feed,
    source: str | bytes,
    result: Optional[ImportResult] = None,
    *,
    cancel=None,
    session_factory=None,
    flush_every: Optional[int] = None,
    progress: Optional[Callable[[str], None]] = None,
) -> ImportResult:
    """
    Import one source through ``feed``.

    Parameters
    ----------
    feed : which source format and target model
    source : raw file content (bytes or str)
    result : aggregate to fill; a new one is created when omitted
    cancel : anything with ``is_set()`` (threading.Event); checked
             before every row
    session_factory : zero-arg callable returning a Session; defaults
                      to db.get_session
    flush_every : flush pending rows every N rows (default config)
    progress : optional callable receiving human-readable phase and
               batch messages, e.g. a console printer

    Returns
    -------
    The same ImportResult.  Raises FatalImportError when the session
    cannot be opened or the batch cannot be written.
    """
    result = result if result is not None else ImportResult()
    flush_every = config.FLUSH_EVERY if flush_every is None else flush_every

    _notify(progress, f"Parsing {feed.source_name}...")
    text = decode(source) if source is not None else ""
    if not text.strip():
        result.fail(f"{feed.name} content is empty.")
        return result

    try:
        entries = feed.decode(text, result)
    except ValueError as exc:
        result.fail(f"{feed.name} source could not be read: {format_exception_chain(exc)}")
        return result

    logger.info(
        f"Parsed {len(entries)} rows from {feed.source_name} "
        f"({result.malformed_skipped} malformed rows skipped)"
    )
    if not entries:
        result.fail(f"No valid data rows found in {feed.source_name}.")
        return result

    run = ImportResult()
    try:
        with session_scope(session_factory) as session:
            _process_rows(feed, entries, session, run, result,
                          cancel, flush_every, progress)
            session.commit()
    except ImportCancelled:
        logger.warning(f"{feed.name} import was cancelled.")
        result.fail(f"{feed.name} import was cancelled.")
        return result
    except Exception as exc:
        chain = format_exception_chain(exc)
        logger.exception(f"Critical error during {feed.name.lower()} import: {chain}")
        result.fail(f"{feed.name} import failed: {chain}")
        raise FatalImportError(f"{feed.name} import failed") from exc

    _merge_counts(result, run)
    summary = _summary(feed, run)
    result.append_message(summary)
    _notify(progress, summary)
    return result


def _notify(progress, message: str):
    logger.info(message)
    if progress is not None:
        progress(message)


def _process_rows(feed, entries, session, run, result, cancel, flush_every, progress):
    resolver = None
    if feed.links_product:
        _notify(progress, f"Linking {feed.plural} to products...")
        resolver = ProductResolver()
    engine = UpsertEngine(feed.model, feed.key_columns)

    _notify(progress, f"Upserting {feed.plural}...")

    for row_no, entry in entries:
        if cancel is not None and cancel.is_set():
            raise ImportCancelled(f"cancelled before row {row_no}")

        try:
            candidate = feed.normalize(entry)
        except Exception as exc:
            result.add_error(f"{feed.name} row {row_no}: {format_exception_chain(exc)}")
            continue

        if resolver is not None:
            product_id = resolver.resolve(session, candidate.parent_key)
            candidate.payload["product_id"] = product_id
            if product_id is None:
                run.unlinked += 1
            else:
                run.linked += 1

        if engine.upsert(session, candidate) == CREATED:
            run.created += 1
        else:
            run.updated += 1
        run.rows_processed += 1

        if flush_every and run.rows_processed % flush_every == 0:
            session.flush()
            engine.forget_flushed()
            _notify(progress, f"{feed.name}: {run.created} created, {run.updated} updated "
                              f"({run.rows_processed}/{len(entries)} rows processed)")


def _merge_counts(result: ImportResult, run: ImportResult):
    result.created += run.created
    result.updated += run.updated
    result.linked += run.linked
    result.unlinked += run.unlinked
    result.rows_processed += run.rows_processed


def _summary(feed: Feed, run: ImportResult) -> str:
    text = (f"{feed.name}: {run.rows_processed} rows processed "
            f"({run.created} created, {run.updated} updated)")
    if feed.links_product:
        text += f", {run.linked} linked to products, {run.unlinked} unlinked"
    return text + "."


# ── Per-feed entry points ──────────────────────────────────────────────

def run_product_import(content, result=None, **kwargs) -> ImportResult:
    return run_import(feeds.PRODUCTS, content, result, **kwargs)


def run_patent_import(content, result=None, **kwargs) -> ImportResult:
    return run_import(feeds.PATENTS, content, result, **kwargs)


def run_exclusivity_import(content, result=None, **kwargs) -> ImportResult:
    return run_import(feeds.EXCLUSIVITY, content, result, **kwargs)


def load_embedded_use_codes() -> str:
    """Return the bundled use-code JSON document as text."""
    return config.USE_CODES_PATH.read_text(encoding="utf-8")


def run_use_code_import(result=None, *, source=None, **kwargs) -> ImportResult:
    """Import use-code definitions, from ``source`` or the bundled resource."""
    result = result if result is not None else ImportResult()
    if source is None:
        try:
            source = load_embedded_use_codes()
        except OSError as exc:
            result.fail(f"Patent use code resource could not be loaded: "
                        f"{format_exception_chain(exc)}")
            return result
    return run_import(feeds.USE_CODES, source, result, **kwargs)
