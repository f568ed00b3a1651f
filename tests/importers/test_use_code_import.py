import json

from db.models import PatentUseCodeDefinition
from import_engine import run_use_code_import
from import_engine.importer import load_embedded_use_codes
from tests.factories import UseCodeFactory


def test_embedded_resource_is_a_list_of_code_objects():
    document = json.loads(load_embedded_use_codes())

    assert isinstance(document, list)
    assert document
    assert all("code" in item and "definition" in item for item in document)


def test_embedded_import_loads_every_definition(engine, fetch_all):
    expected = len(json.loads(load_embedded_use_codes()))

    result = run_use_code_import()

    assert result.success
    assert result.created == expected
    codes = {d.code for d in fetch_all(PatentUseCodeDefinition)}
    assert "U-141" in codes
    assert len(codes) == expected


def test_rerun_updates_every_entry(engine, fetch_all):
    first = run_use_code_import()
    second = run_use_code_import()

    assert second.created == 0
    assert second.updated == first.created
    assert len(fetch_all(PatentUseCodeDefinition)) == first.created


def test_existing_definition_is_overwritten(session, fetch_all):
    UseCodeFactory(code="U-1", definition="old wording")

    source = json.dumps([{"code": "U-1", "definition": "METHOD OF TREATING HYPERTENSION"}])
    result = run_use_code_import(source=source)

    assert result.updated == 1
    [definition] = fetch_all(PatentUseCodeDefinition)
    assert definition.definition == "METHOD OF TREATING HYPERTENSION"


def test_keys_are_case_insensitive_and_values_trimmed(engine, fetch_all):
    source = json.dumps([{"Code": " U-7 ", "DEFINITION": " USE IN PAIN "}])

    result = run_use_code_import(source=source)

    assert result.created == 1
    [definition] = fetch_all(PatentUseCodeDefinition)
    assert definition.code == "U-7"
    assert definition.definition == "USE IN PAIN"


def test_missing_definition_is_stored_empty(engine, fetch_all):
    run_use_code_import(source='[{"code": "U-8"}]')

    assert fetch_all(PatentUseCodeDefinition)[0].definition == ""


def test_bad_items_are_reported_and_skipped(engine, fetch_all):
    source = json.dumps([
        {"code": "U-1", "definition": "A"},
        "not an object",
        {"code": "  ", "definition": "B"},
        {"code": "U-2", "definition": "C"},
    ])

    result = run_use_code_import(source=source)

    assert result.success
    assert result.created == 2
    assert len(result.errors) == 2
    assert result.errors[0].startswith("Patent use code row 2:")
    assert result.errors[1].startswith("Patent use code row 3: code")


def test_invalid_json_fails_without_touching_the_database(engine, fetch_all):
    result = run_use_code_import(source="{not json")

    assert result.success is False
    assert result.errors[0].startswith("Patent use code source could not be read:")
    assert fetch_all(PatentUseCodeDefinition) == []


def test_json_object_instead_of_list_fails(engine):
    result = run_use_code_import(source='{"code": "U-1"}')

    assert result.success is False
    assert "must contain a JSON list" in result.errors[0]


def test_empty_list_reports_no_rows(engine):
    result = run_use_code_import(source="[]")

    assert result.success is False
    assert result.errors == ["No valid data rows found in patent_use_codes.json."]


def test_missing_resource_fails(engine, monkeypatch, tmp_path):
    import config
    monkeypatch.setattr(config, "USE_CODES_PATH", tmp_path / "missing.json")

    result = run_use_code_import()

    assert result.success is False
    assert result.errors[0].startswith("Patent use code resource could not be loaded:")
