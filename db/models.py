"""
db.models - SQLAlchemy ORM declarations.

Tables
------
orange_book_products          - one row per (appl_type, appl_no, product_no).
                                Parent of patents and exclusivities.
orange_book_patents           - one row per patent per product.  Natural key
                                (appl_type, appl_no, product_no, patent_no).
orange_book_exclusivities     - one row per exclusivity code per product.
orange_book_patent_use_codes  - lookup of use-code definitions keyed by the
                                code itself (no surrogate id).

Patents and exclusivities carry the product natural key columns as well as
the resolved product_id, so rows whose product is not (yet) known can still
be stored and re-linked on a later import.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String,
    Text, UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Product(Base):
    __tablename__ = "orange_book_products"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # ── Natural key ────────────────────────────────────────────────────
    appl_type  = Column(String(1), nullable=False)
    appl_no    = Column(String(6), nullable=False)
    product_no = Column(String(3), nullable=False)

    # ── Payload ────────────────────────────────────────────────────────
    ingredient          = Column(Text)
    dosage_form         = Column(String(200))
    route               = Column(String(200))
    trade_name          = Column(String(200), index=True)
    applicant           = Column(String(100))
    applicant_full_name = Column(String(300))
    strength            = Column(Text)
    te_code             = Column(String(20))
    approval_date       = Column(Date)
    approval_date_is_premarket = Column(Boolean, nullable=False, default=False)
    is_rld = Column(Boolean, nullable=False, default=False)
    is_rs  = Column(Boolean, nullable=False, default=False)
    type   = Column(String(10))

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    patents = relationship("Patent", back_populates="product")
    exclusivities = relationship("Exclusivity", back_populates="product")

    __table_args__ = (
        UniqueConstraint("appl_type", "appl_no", "product_no",
                         name="uq_product_natural_key"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "appl_type": self.appl_type,
            "appl_no": self.appl_no,
            "product_no": self.product_no,
            "ingredient": self.ingredient,
            "dosage_form": self.dosage_form,
            "route": self.route,
            "trade_name": self.trade_name,
            "applicant": self.applicant,
            "strength": self.strength,
            "approval_date": self.approval_date.isoformat() if self.approval_date else None,
            "is_rld": bool(self.is_rld),
            "is_rs": bool(self.is_rs),
        }


class Patent(Base):
    __tablename__ = "orange_book_patents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer,
                        ForeignKey("orange_book_products.id", ondelete="SET NULL"),
                        nullable=True, index=True)

    # ── Natural key ────────────────────────────────────────────────────
    appl_type  = Column(String(1), nullable=False)
    appl_no    = Column(String(6), nullable=False)
    product_no = Column(String(3), nullable=False)
    patent_no  = Column(String(20), nullable=False)

    # ── Payload ────────────────────────────────────────────────────────
    patent_expire_date  = Column(Date, index=True)
    drug_substance_flag = Column(Boolean, nullable=False, default=False)
    drug_product_flag   = Column(Boolean, nullable=False, default=False)
    patent_use_code     = Column(String(6))          # NULL when blank in the feed
    delist_flag         = Column(Boolean, nullable=False, default=False)
    submission_date     = Column(Date)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    product = relationship("Product", back_populates="patents")

    __table_args__ = (
        UniqueConstraint("appl_type", "appl_no", "product_no", "patent_no",
                         name="uq_patent_natural_key"),
        Index("ix_patent_product_key", "appl_type", "appl_no", "product_no"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "appl_type": self.appl_type,
            "appl_no": self.appl_no,
            "product_no": self.product_no,
            "patent_no": self.patent_no,
            "patent_expire_date": (self.patent_expire_date.isoformat()
                                   if self.patent_expire_date else None),
            "drug_substance_flag": bool(self.drug_substance_flag),
            "drug_product_flag": bool(self.drug_product_flag),
            "patent_use_code": self.patent_use_code,
            "delist_flag": bool(self.delist_flag),
            "submission_date": (self.submission_date.isoformat()
                                if self.submission_date else None),
        }


class Exclusivity(Base):
    __tablename__ = "orange_book_exclusivities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer,
                        ForeignKey("orange_book_products.id", ondelete="SET NULL"),
                        nullable=True, index=True)

    appl_type        = Column(String(1), nullable=False)
    appl_no          = Column(String(6), nullable=False)
    product_no       = Column(String(3), nullable=False)
    exclusivity_code = Column(String(20), nullable=False)

    exclusivity_date = Column(Date)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    product = relationship("Product", back_populates="exclusivities")

    __table_args__ = (
        UniqueConstraint("appl_type", "appl_no", "product_no", "exclusivity_code",
                         name="uq_exclusivity_natural_key"),
    )


class PatentUseCodeDefinition(Base):
    """
    Definitions for the use codes referenced by Patent.patent_use_code.

    patent.txt carries only the code (e.g. "U-141"); the wording is
    published separately and shipped as a JSON resource.
    """
    __tablename__ = "orange_book_patent_use_codes"

    code       = Column(String(6), primary_key=True)
    definition = Column(String(1000), nullable=False, default="")
