"""
services - Business-logic layer sitting between API and DB.
"""

from services.patent_service import PatentService       # noqa: F401
