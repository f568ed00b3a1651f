"""
services.patent_service - Read-side queries over imported patents.

All session management is the caller's responsibility (open before,
close after).
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models import Patent, Product

PED_SUFFIX = "*PED"


def add_months(start: date, months: int) -> date:
    """Calendar-aware month offset; the day is clamped to the month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def drop_pediatric_duplicates(rows: list[dict]) -> list[dict]:
    """
    Remove base patent rows whose "<patent_no>*PED" companion for the
    same product is also present.  The *PED row carries the extended
    pediatric-exclusivity expiry and supersedes the base row.
    """
    ped_keys = {
        (r["appl_type"], r["appl_no"], r["product_no"], r["patent_no"][:-len(PED_SUFFIX)])
        for r in rows
        if r["patent_no"].upper().endswith(PED_SUFFIX)
    }
    return [
        r for r in rows
        if (r["appl_type"], r["appl_no"], r["product_no"], r["patent_no"]) not in ped_keys
    ]


class PatentService:

    @staticmethod
    def count_expiring(session: Session, months: int,
                       today: Optional[date] = None) -> int:
        start = today or date.today()
        end = add_months(start, months)
        return session.execute(
            select(func.count(Patent.id)).where(
                Patent.patent_expire_date >= start,
                Patent.patent_expire_date <= end,
            )
        ).scalar_one()

    @staticmethod
    def expiring(
        session: Session,
        months: int,
        page: int = 1,
        page_size: int = 50,
        today: Optional[date] = None,
    ) -> list[dict]:
        """
        Patents expiring between today and today + ``months``, soonest
        first, with their product's trade name and ingredient.
        """
        start = today or date.today()
        end = add_months(start, months)

        stmt = (
            select(Patent, Product)
            .outerjoin(Product, Patent.product_id == Product.id)
            .where(
                Patent.patent_expire_date >= start,
                Patent.patent_expire_date <= end,
            )
            .order_by(Patent.patent_expire_date, Patent.appl_no, Patent.patent_no)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )

        rows = []
        for patent, product in session.execute(stmt):
            d = patent.to_dict()
            d["trade_name"] = product.trade_name if product else None
            d["ingredient"] = product.ingredient if product else None
            rows.append(d)
        return drop_pediatric_duplicates(rows)
