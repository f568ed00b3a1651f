"""
api.routes_patents - /api/v1/patents read endpoints.
"""

import math

from flask import request, jsonify

from api import api_bp
from db import get_session
from services.patent_service import PatentService
import config


@api_bp.route("/patents/expiring")
def expiring_patents():
    """
    GET /api/v1/patents/expiring?months=12&page=1&page_size=50

    Patents whose expiry falls within the next ``months`` months.
    Base patents are hidden when their *PED companion is on the page.
    """
    try:
        months    = int(request.args.get("months", 0))
        page      = int(request.args.get("page", 1))
        page_size = min(int(request.args.get("page_size", config.DEFAULT_PAGE_SIZE)),
                        config.API_MAX_LIMIT)
    except ValueError:
        return jsonify({"error": "months, page and page_size must be integers"}), 400

    if months <= 0:
        return jsonify({"error": "months must be greater than 0"}), 400
    if months > config.API_MAX_MONTHS:
        return jsonify({"error": f"months must be at most {config.API_MAX_MONTHS}"}), 400
    if page < 1 or page_size < 1:
        return jsonify({"error": "page and page_size must be positive"}), 400

    session = get_session()
    try:
        total = PatentService.count_expiring(session, months)
        patents = PatentService.expiring(session, months, page=page, page_size=page_size)
        return jsonify({
            "total": total,
            "total_pages": math.ceil(total / page_size),
            "page": page,
            "page_size": page_size,
            "patents": patents,
        })
    finally:
        session.close()
