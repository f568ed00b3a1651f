#!/usr/bin/env python3
"""
OBDB - Orange Book reference data
=================================

    python main.py import --zip EOBZIP_2026_09.zip --use-codes
    python main.py import --patents patent.txt --exclusivity exclusivity.txt
    python main.py serve

See config.py for all environment-variable tunables.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
import zipfile
from pathlib import Path

from flask import Flask, jsonify

import config
from db import init_db
from import_engine import (
    FatalImportError, ImportResult, run_exclusivity_import,
    run_patent_import, run_product_import, run_use_code_import,
)

logger = logging.getLogger(__name__)

# Feeds in dependency order: products must exist before patents and
# exclusivities can link to them.
FILE_IMPORTS = (
    ("products",    config.PRODUCTS_FILE,    run_product_import),
    ("patents",     config.PATENT_FILE,      run_patent_import),
    ("exclusivity", config.EXCLUSIVITY_FILE, run_exclusivity_import),
)


def create_app(init_database: bool = True) -> Flask:
    """Flask application factory."""
    from api import api_bp

    app = Flask(__name__)
    app.secret_key = config.SECRET

    if init_database:
        init_db(config.DB_URL)
        print(f"  Database: {config.DB_URL}")

    app.register_blueprint(api_bp)

    # ── Error handlers ──────────────────────────────────────────────
    # Routing misses never reach the blueprint's handlers
    @app.errorhandler(404)
    def _404(_e):
        return jsonify({"error": "not found"}), 404

    @app.errorhandler(405)
    def _405(_e):
        return jsonify({"error": "method not allowed"}), 405

    return app


def read_zip_members(zip_path: str | Path) -> dict[str, bytes]:
    """
    Pull the Orange Book flat files out of the FDA ZIP.
    Members are matched by file name, case-insensitively, at any depth.
    """
    wanted = {name.lower() for _, name, _ in FILE_IMPORTS}
    found: dict[str, bytes] = {}
    with zipfile.ZipFile(zip_path) as zf:
        for info in zf.infolist():
            name = Path(info.filename).name.lower()
            if name in wanted and name not in found:
                found[name] = zf.read(info)
    return found


def _collect_sources(args) -> dict[str, bytes]:
    sources: dict[str, bytes] = {}
    if args.zip:
        sources.update(read_zip_members(args.zip))
    for option, file_name, _ in FILE_IMPORTS:
        path = getattr(args, option)
        if path:
            sources[file_name.lower()] = Path(path).read_bytes()
    return sources


def _print_progress(message: str):
    print(f"    {message}")


def _print_result(label: str, result: ImportResult):
    status = "OK" if result.success else "FAILED"
    print(f"  {label:<12} {status}: {result.created} created, "
          f"{result.updated} updated, {result.malformed_skipped} malformed")
    if result.linked or result.unlinked:
        print(f"  {'':<12} {result.linked} linked, {result.unlinked} unlinked")
    if result.errors:
        print(f"  {'':<12} First errors (max 10):")
        for err in result.errors[:10]:
            print(f"    {err}")


def run_imports(args) -> int:
    """Run the requested imports in order.  Returns the process exit code."""
    sources = _collect_sources(args)
    if not sources and not args.use_codes:
        print("  Nothing to import - pass --zip, a file option or --use-codes.")
        return 2

    init_db(config.DB_URL)

    cancel = threading.Event()
    timer = None
    if args.timeout:
        timer = threading.Timer(args.timeout, cancel.set)
        timer.daemon = True
        timer.start()

    run_opts = {"cancel": cancel, "progress": _print_progress}
    jobs = []
    if args.use_codes:
        jobs.append(("use codes", lambda r: run_use_code_import(r, **run_opts)))
    for option, file_name, func in FILE_IMPORTS:
        content = sources.get(file_name.lower())
        if content is not None:
            jobs.append((option, lambda r, f=func, c=content: f(c, r, **run_opts)))

    exit_code = 0
    try:
        for label, job in jobs:
            result = ImportResult()
            try:
                job(result)
            except FatalImportError:
                _print_result(label, result)
                return 1
            _print_result(label, result)
            if not result.success:
                exit_code = 1
    finally:
        if timer is not None:
            timer.cancel()
    return exit_code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Orange Book reference data importer")
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import Orange Book files")
    imp.add_argument("--zip", help="FDA Orange Book ZIP containing the .txt files")
    imp.add_argument("--products", help="Path to products.txt")
    imp.add_argument("--patents", help="Path to patent.txt")
    imp.add_argument("--exclusivity", help="Path to exclusivity.txt")
    imp.add_argument("--use-codes", action="store_true",
                     help="Load the bundled patent use-code definitions")
    imp.add_argument("--timeout", type=float, default=None,
                     help="Cancel the run after this many seconds")

    sub.add_parser("serve", help="Run the HTTP API")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    print("=" * 56)
    print("  OBDB - Orange Book reference data")
    print("=" * 56)

    if args.command == "import":
        return run_imports(args)

    app = create_app()
    print(f"\n  http://{config.HOST}:{config.PORT}")
    print("=" * 56)
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
    return 0


if __name__ == "__main__":
    sys.exit(main())
