"""
import_engine.feeds - One definition per Orange Book source.

A feed knows how to turn its raw source into ordered entries and how to
turn one entry into a Candidate for the upsert engine.  The pipeline in
import_engine.importer is the same for every feed.

    ProductFeed     products.txt      14 columns   parent of the two below
    PatentFeed      patent.txt        10 columns   linked to Product
    ExclusivityFeed exclusivity.txt    5 columns   linked to Product
    UseCodeFeed     JSON resource     {code, definition} objects
"""

from __future__ import annotations

import json
from typing import Any

import config
from db.models import Exclusivity, Patent, PatentUseCodeDefinition, Product
from import_engine.errors import RowError
from import_engine.normalizers import (
    nullable_trim, parse_approval_date, parse_date, parse_y_flag,
    parse_yes_no, require, split_dosage_form_route,
)
from import_engine.report import ImportResult
from import_engine.text_parser import decode, parse_lines
from import_engine.upsert import Candidate

Entry = tuple[int, Any]                 # (row/line number, raw entry)

PRODUCT_KEY = ("appl_type", "appl_no", "product_no")


class Feed:
    name: str = ""                      # used in messages: "Patent import …"
    plural: str = ""                    # used in progress lines: "Upserting patents..."
    source_name: str = ""               # file / resource name
    model = None
    key_columns: tuple[str, ...] = ()
    links_product: bool = False

    def decode(self, source, result: ImportResult) -> list[Entry]:
        raise NotImplementedError

    def normalize(self, entry) -> Candidate:
        raise NotImplementedError


class TextFeed(Feed):
    """Tilde-delimited flat file with a header row."""
    expected_columns: int = 0

    def decode(self, source, result: ImportResult) -> list[Entry]:
        return parse_lines(source, self.expected_columns, result)


def _product_key(fields: list[str], t: int, a: int, p: int) -> dict[str, str]:
    return {
        "appl_type":  require(fields[t], "Appl_Type"),
        "appl_no":    require(fields[a], "Appl_No"),
        "product_no": require(fields[p], "Product_No"),
    }


# ── products.txt ──────────────────────────────────────────────────────

class ProductFeed(TextFeed):
    name = "Product"
    plural = "products"
    source_name = config.PRODUCTS_FILE
    model = Product
    key_columns = PRODUCT_KEY
    expected_columns = config.PRODUCT_COLUMN_COUNT

    # Ingredient~DF;Route~Trade_Name~Applicant~Strength~Appl_Type~Appl_No~
    # Product_No~TE_Code~Approval_Date~RLD~RS~Type~Applicant_Full_Name
    def normalize(self, fields: list[str]) -> Candidate:
        key = _product_key(fields, 5, 6, 7)
        dosage_form, route = split_dosage_form_route(fields[1])
        approval_date, premarket = parse_approval_date(fields[9])
        return Candidate(key=key, payload={
            "ingredient":  nullable_trim(fields[0]),
            "dosage_form": dosage_form,
            "route":       route,
            "trade_name":  nullable_trim(fields[2]),
            "applicant":   nullable_trim(fields[3]),
            "strength":    nullable_trim(fields[4]),
            "te_code":     nullable_trim(fields[8]),
            "approval_date": approval_date,
            "approval_date_is_premarket": premarket,
            "is_rld": parse_yes_no(fields[10]),
            "is_rs":  parse_yes_no(fields[11]),
            "type":   nullable_trim(fields[12]),
            "applicant_full_name": nullable_trim(fields[13]),
        })


# ── patent.txt ────────────────────────────────────────────────────────

class PatentFeed(TextFeed):
    name = "Patent"
    plural = "patents"
    source_name = config.PATENT_FILE
    model = Patent
    key_columns = PRODUCT_KEY + ("patent_no",)
    links_product = True
    expected_columns = config.PATENT_COLUMN_COUNT

    # Appl_Type~Appl_No~Product_No~Patent_No~Patent_Expire_Date_Text~
    # Drug_Substance_Flag~Drug_Product_Flag~Patent_Use_Code~Delist_Flag~
    # Submission_Date
    def normalize(self, fields: list[str]) -> Candidate:
        key = _product_key(fields, 0, 1, 2)
        key["patent_no"] = require(fields[3], "Patent_No")
        return Candidate(
            key=key,
            payload={
                "patent_expire_date":  parse_date(fields[4]),
                "drug_substance_flag": parse_y_flag(fields[5]),
                "drug_product_flag":   parse_y_flag(fields[6]),
                "patent_use_code":     nullable_trim(fields[7]),
                "delist_flag":         parse_y_flag(fields[8]),
                "submission_date":     parse_date(fields[9]),
            },
            parent_key=(key["appl_type"], key["appl_no"], key["product_no"]),
        )


# ── exclusivity.txt ───────────────────────────────────────────────────

class ExclusivityFeed(TextFeed):
    name = "Exclusivity"
    plural = "exclusivities"
    source_name = config.EXCLUSIVITY_FILE
    model = Exclusivity
    key_columns = PRODUCT_KEY + ("exclusivity_code",)
    links_product = True
    expected_columns = config.EXCLUSIVITY_COLUMN_COUNT

    def normalize(self, fields: list[str]) -> Candidate:
        key = _product_key(fields, 0, 1, 2)
        key["exclusivity_code"] = require(fields[3], "Exclusivity_Code")
        return Candidate(
            key=key,
            payload={"exclusivity_date": parse_date(fields[4])},
            parent_key=(key["appl_type"], key["appl_no"], key["product_no"]),
        )


# ── patent use-code definitions (JSON) ────────────────────────────────

class UseCodeFeed(Feed):
    name = "Patent use code"
    plural = "patent use codes"
    source_name = config.USE_CODES_PATH.name
    model = PatentUseCodeDefinition
    key_columns = ("code",)

    def decode(self, source, result: ImportResult) -> list[Entry]:
        """
        Parse the JSON document; each list item is one row.
        Raises ValueError when the document is not a JSON list.
        """
        try:
            document = json.loads(decode(source))
        except json.JSONDecodeError as exc:
            raise ValueError(f"{self.source_name} is not valid JSON") from exc
        if not isinstance(document, list):
            raise ValueError(f"{self.source_name} must contain a JSON list")
        return list(enumerate(document, start=1))

    def normalize(self, item) -> Candidate:
        if not isinstance(item, dict):
            raise RowError(f"expected an object, got {type(item).__name__}")
        fields = {str(k).lower(): v for k, v in item.items()}
        code = require(_as_text(fields.get("code")), "code")
        definition = nullable_trim(_as_text(fields.get("definition"))) or ""
        return Candidate(key={"code": code}, payload={"definition": definition})


def _as_text(value) -> str | None:
    return None if value is None else str(value)


PRODUCTS = ProductFeed()
PATENTS = PatentFeed()
EXCLUSIVITY = ExclusivityFeed()
USE_CODES = UseCodeFeed()
