"""
api.errors - JSON error handlers for the API blueprint.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from api import api_bp

logger = logging.getLogger(__name__)


@api_bp.errorhandler(HTTPException)
def api_http_error(e: HTTPException):
    return jsonify({"error": e.name.lower(), "detail": e.description}), e.code


@api_bp.errorhandler(Exception)
def api_server_error(e: Exception):
    logger.exception(f"Unhandled API error: {e}")
    return jsonify({"error": "internal server error"}), 500
