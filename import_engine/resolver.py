"""
import_engine.resolver - Product lookup by natural key.

Patents and exclusivities reference their product through
(appl_type, appl_no, product_no).  A miss is not an error: the child
row is still stored, just without a product_id.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import Product

logger = logging.getLogger(__name__)

ProductKey = tuple[str, str, str]


class ProductResolver:
    """
    Per-run memo of product ids.  Each distinct key hits the
    database once; unknown keys are logged once.
    """

    def __init__(self):
        self._cache: dict[ProductKey, Optional[int]] = {}

    def resolve(self, session: Session, key: ProductKey) -> Optional[int]:
        if key in self._cache:
            return self._cache[key]

        appl_type, appl_no, product_no = key
        product_id = session.execute(
            select(Product.id).where(
                Product.appl_type == appl_type,
                Product.appl_no == appl_no,
                Product.product_no == product_no,
            )
        ).scalar_one_or_none()

        if product_id is None:
            logger.warning(
                f"No matching product for ApplType={appl_type}, "
                f"ApplNo={appl_no}, ProductNo={product_no}"
            )
        self._cache[key] = product_id
        return product_id
