"""
import_engine.normalizers - Raw token → typed value conversions.

Every function here is pure apart from a warning log line for values
that look like dates but cannot be read.  Orange Book conventions:

  • flags are "Y" or blank (patent file), "Yes"/"No" (products file)
  • dates are "Mon d, yyyy", e.g. "Aug 24, 2026"
  • blank secondary fields mean "not set" and are stored as NULL
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from import_engine.errors import FieldCoercionError

logger = logging.getLogger(__name__)

DATE_FORMAT = "%b %d, %Y"
PREMARKET_DATE_TEXT = "Approved Prior to Jan 1, 1982"
DF_ROUTE_SEPARATOR = ";"


def parse_y_flag(value: Optional[str]) -> bool:
    """True only for "Y"/"y"; anything else (including "Yes") is False."""
    if value is None:
        return False
    return value.strip() in ("Y", "y")


def parse_yes_no(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() == "yes"


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse "Aug 24, 2026" / "Feb 1, 2027" into a date.
    Blank or unreadable text gives None.
    """
    text = nullable_trim(value)
    if text is None:
        return None
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        logger.warning(f"Could not parse date: {text!r}")
        return None


def parse_approval_date(value: Optional[str]) -> tuple[Optional[date], bool]:
    """
    Like parse_date, but the literal premarket text yields (None, True).
    Returns (approval_date, is_premarket).
    """
    text = nullable_trim(value)
    if text is not None and text.lower() == PREMARKET_DATE_TEXT.lower():
        return None, True
    return parse_date(text), False


def nullable_trim(value: Optional[str]) -> Optional[str]:
    """Trim; empty and whitespace-only become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def require(value: Optional[str], column: str) -> str:
    """Trim a mandatory (natural-key) field, raising when it is blank."""
    text = nullable_trim(value)
    if text is None:
        raise FieldCoercionError(column, value, "required value is blank")
    return text


def split_dosage_form_route(value: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """
    "TABLET;ORAL" → ("TABLET", "ORAL").  Splits on the last separator;
    with no separator the whole value is the dosage form.
    """
    text = nullable_trim(value)
    if text is None:
        return None, None
    dosage_form, sep, route = text.rpartition(DF_ROUTE_SEPARATOR)
    if not sep:
        return text, None
    return nullable_trim(dosage_form), nullable_trim(route)
