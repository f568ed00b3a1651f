"""
db - Database layer.

Public API:
    init_db()        → create engine + tables
    get_session()    → new Session
    session_scope()  → context manager, one session per import run
    Product, Patent, Exclusivity, PatentUseCodeDefinition → ORM models
"""

from db.engine import init_db, get_session, session_scope           # noqa: F401
from db.models import (                                             # noqa: F401
    Base, Product, Patent, Exclusivity, PatentUseCodeDefinition,
)
