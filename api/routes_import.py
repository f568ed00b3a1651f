"""
api.routes_import - /api/v1/import endpoints.

Only the embedded reference dataset can be imported over HTTP; the
Orange Book flat files are loaded through the command line.
"""

from flask import jsonify

from api import api_bp
from import_engine import FatalImportError, run_use_code_import
from import_engine.report import ImportResult


@api_bp.route("/import/use-codes", methods=["POST"])
def api_import_use_codes():
    """
    POST /api/v1/import/use-codes

    Upsert the bundled patent use-code definitions and return the
    import result.
    """
    result = ImportResult()
    try:
        run_use_code_import(result)
    except FatalImportError:
        return jsonify(result.to_dict()), 500

    status = 200 if result.success else 422
    return jsonify(result.to_dict()), status
