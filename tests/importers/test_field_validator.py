import pytest

from import_engine.records import CandidateRecord, Severity
from import_engine.validator import (
    coerce_speaker_count, has_errors, normalize_text, validate_record,
)


def _fields(issues, severity=Severity.ERROR):
    return {i.field for i in issues if i.severity is severity}


def test_valid_record_has_no_errors():
    row = CandidateRecord(2, name="Spanish", endonym="Español", iso_639_3_code="spa",
                          speaker_count="1 200")
    assert not has_errors(validate_record(row))


def test_all_problems_of_a_row_are_reported_together():
    row = CandidateRecord(5, name="", iso_639_3_code="en", speaker_count="many")
    issues = validate_record(row)

    assert _fields(issues) == {"name", "iso_639_3_code", "speaker_count"}
    assert all(i.row_number == 5 for i in issues)


def test_name_and_endonym_length_limit():
    long = "x" * 201
    row = CandidateRecord(2, name=long, endonym=long, translations={"nl": long})

    assert _fields(validate_record(row)) == {"name", "endonym", "name_nl"}


def test_consistency_warnings():
    row = CandidateRecord(2, name="spa", iso_639_3_code="spa")
    issues = validate_record(row)

    assert not has_errors(issues)
    assert _fields(issues, Severity.WARNING) == {"name", "endonym"}


def test_crashing_rule_becomes_row_error():
    def broken(row):
        raise RuntimeError("boom")

    issues = validate_record(CandidateRecord(7, name="Spanish"), rules=[broken])

    assert len(issues) == 1
    assert issues[0].field == "row"
    assert "boom" in issues[0].message


@pytest.mark.parametrize("raw, expected", [
    (None, None),
    ("", None),
    ("42", 42),
    ("1,500", 1500),
    ("12 000", 12000),
    ("1_000_000", 1000000),
])
def test_coerce_speaker_count(raw, expected):
    assert coerce_speaker_count(raw) == expected


@pytest.mark.parametrize("raw", ["-5", "1.5", "lots"])
def test_coerce_speaker_count_rejects(raw):
    with pytest.raises(ValueError):
        coerce_speaker_count(raw)


def test_normalize_text_collapses_whitespace():
    assert normalize_text("  Old   Church\tSlavonic ") == "Old Church Slavonic"
    assert normalize_text("   ") is None
