from datetime import date

from db.models import Patent
from import_engine import ImportResult, run_patent_import
from tests.factories import ProductFactory
from tests.sample_data import (
    PATENT_HEADER, PATENT_ROW_1, PATENT_ROW_2, PATENT_ROW_BLANK_USE_CODE,
    PATENT_ROW_MALFORMED, build_file,
)


def test_new_records_are_inserted_with_normalized_fields(engine, fetch_all):
    result = run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1))

    assert result.success
    assert result.created == 1
    assert result.updated == 0

    [patent] = fetch_all(Patent)
    assert (patent.appl_type, patent.appl_no, patent.product_no, patent.patent_no) == (
        "N", "020610", "001", "7625884")
    assert patent.patent_expire_date == date(2026, 8, 24)
    assert patent.drug_substance_flag is True
    assert patent.drug_product_flag is False
    assert patent.patent_use_code == "U-141"
    assert patent.delist_flag is False
    assert patent.submission_date == date(2013, 6, 27)


def test_changed_expiry_updates_existing_record(engine, fetch_all):
    run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1))
    [before] = fetch_all(Patent)

    updated_row = "N~020610~001~7625884~Dec 31, 2030~Y~~U-141~~Jun 27, 2013"
    result = run_patent_import(build_file(PATENT_HEADER, updated_row))

    assert result.success
    assert result.created == 0
    assert result.updated == 1

    [after] = fetch_all(Patent)
    assert after.id == before.id
    assert after.created_at == before.created_at
    assert after.patent_expire_date == date(2030, 12, 31)


def test_reimport_is_idempotent(engine, fetch_all):
    content = build_file(PATENT_HEADER, PATENT_ROW_1, PATENT_ROW_2)

    first = run_patent_import(content)
    count_after_first = len(fetch_all(Patent))
    second = run_patent_import(content)

    assert first.created == 2
    assert second.created == 0
    assert second.updated == 2
    assert len(fetch_all(Patent)) == count_after_first == 2


def test_matching_product_sets_product_id(session, fetch_all):
    product = ProductFactory(appl_type="N", appl_no="020610", product_no="001")

    result = run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1))

    [patent] = fetch_all(Patent)
    assert patent.product_id == product.id
    assert result.linked == 1
    assert result.unlinked == 0


def test_linked_and_unlinked_counts(session, fetch_all):
    ProductFactory(appl_type="N", appl_no="020610", product_no="001")

    result = run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1, PATENT_ROW_2))

    assert result.created == 2
    assert result.updated == 0
    assert result.linked == 1
    assert result.unlinked == 1
    assert result.linked + result.unlinked == result.rows_processed
    # a miss is not an error
    assert result.errors == []

    by_no = {p.patent_no: p for p in fetch_all(Patent)}
    assert by_no["7560445"].product_id is None


def test_product_link_is_filled_in_on_a_later_run(session, fetch_all):
    run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1))
    assert fetch_all(Patent)[0].product_id is None

    product = ProductFactory(appl_type="N", appl_no="020610", product_no="001")
    result = run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1))

    assert result.updated == 1
    assert result.linked == 1
    assert fetch_all(Patent)[0].product_id == product.id


def test_whitespace_use_code_is_stored_as_null(engine, fetch_all):
    run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_BLANK_USE_CODE))

    [patent] = fetch_all(Patent)
    assert patent.patent_use_code is None


def test_use_code_cleared_on_update(engine, fetch_all):
    run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1))
    cleared = "N~020610~001~7625884~Aug 24, 2026~Y~~   ~~Jun 27, 2013"
    run_patent_import(build_file(PATENT_HEADER, cleared))

    assert fetch_all(Patent)[0].patent_use_code is None


def test_malformed_row_is_skipped_and_counted(engine, fetch_all):
    content = build_file(PATENT_HEADER, PATENT_ROW_1, PATENT_ROW_MALFORMED, PATENT_ROW_2)

    result = run_patent_import(content)

    assert result.success
    assert result.rows_processed == 2
    assert result.malformed_skipped == 1
    assert result.errors == []
    assert len(fetch_all(Patent)) == 2


def test_duplicate_key_within_one_file_last_row_wins(engine, fetch_all):
    later = "N~020610~001~7625884~Jan 15, 2031~~Y~U-141~Y~Jun 27, 2013"

    result = run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1, later))

    assert result.created == 1
    assert result.updated == 1
    [patent] = fetch_all(Patent)
    assert patent.patent_expire_date == date(2031, 1, 15)
    assert patent.drug_substance_flag is False
    assert patent.drug_product_flag is True
    assert patent.delist_flag is True


def test_row_with_blank_key_is_reported_and_run_continues(engine, fetch_all):
    blank_patent_no = "N~020610~001~ ~Aug 24, 2026~Y~~~~Jun 27, 2013"

    result = run_patent_import(build_file(PATENT_HEADER, blank_patent_no, PATENT_ROW_2))

    assert result.success
    assert result.created == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Patent row 2: Patent_No")
    assert [p.patent_no for p in fetch_all(Patent)] == ["7560445"]


def test_unparsable_date_is_stored_as_null(engine, fetch_all):
    row = "N~020610~001~7625884~sometime~Y~~U-141~~Jun 27, 2013"

    result = run_patent_import(build_file(PATENT_HEADER, row))

    assert result.success
    assert result.errors == []
    assert fetch_all(Patent)[0].patent_expire_date is None


def test_flushing_in_small_batches_gives_the_same_outcome(engine, fetch_all):
    content = build_file(PATENT_HEADER, PATENT_ROW_1, PATENT_ROW_2, PATENT_ROW_BLANK_USE_CODE)

    result = run_patent_import(content, flush_every=1)

    assert result.created == 3
    assert len(fetch_all(Patent)) == 3


def test_caller_result_is_filled_in_and_returned(engine):
    result = ImportResult()

    returned = run_patent_import(build_file(PATENT_HEADER, PATENT_ROW_1), result)

    assert returned is result
    assert result.created + result.updated <= result.rows_processed
    assert "1 rows processed" in result.message
    assert result.to_dict()["created"] == 1


def test_progress_reports_phases_batches_and_summary(engine):
    messages = []
    content = build_file(PATENT_HEADER, PATENT_ROW_1, PATENT_ROW_2)

    result = run_patent_import(content, flush_every=1, progress=messages.append)

    assert messages == [
        "Parsing patent.txt...",
        "Linking patents to products...",
        "Upserting patents...",
        "Patent: 1 created, 0 updated (1/2 rows processed)",
        "Patent: 2 created, 0 updated (2/2 rows processed)",
        result.message,
    ]


def test_progress_stops_at_parsing_when_no_rows(engine):
    messages = []

    run_patent_import(PATENT_HEADER, progress=messages.append)

    assert messages == ["Parsing patent.txt..."]


def test_duplicate_key_across_a_flush_still_updates(engine, fetch_all):
    later = "N~020610~001~7625884~Jan 15, 2031~~Y~U-141~Y~Jun 27, 2013"
    content = build_file(PATENT_HEADER, PATENT_ROW_1, PATENT_ROW_2, later)

    result = run_patent_import(content, flush_every=1)

    assert result.created == 2
    assert result.updated == 1
    by_no = {p.patent_no: p for p in fetch_all(Patent)}
    assert len(by_no) == 2
    assert by_no["7625884"].patent_expire_date == date(2031, 1, 15)
