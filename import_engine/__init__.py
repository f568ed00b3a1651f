"""
import_engine - Orange Book import pipeline.

Public API:
    run_import(feed, content, result=None, cancel=None) → ImportResult
    run_product_import / run_patent_import / run_exclusivity_import
    run_use_code_import(result=None, source=None)
    format_exception_chain(exc) → str
"""

from import_engine.importer import (                    # noqa: F401
    run_import,
    run_product_import,
    run_patent_import,
    run_exclusivity_import,
    run_use_code_import,
)
from import_engine.report import ImportResult           # noqa: F401
from import_engine.errors import (                      # noqa: F401
    FatalImportError,
    format_exception_chain,
)
