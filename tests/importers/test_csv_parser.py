import pytest

from import_engine import ParseError, ParseOptions, Severity, parse_csv


def _issues(result, row_number, field=None):
    return [i for i in result.issues_for(row_number) if field is None or i.field == field]


def test_missing_name_is_row_error():
    """A row without a name is kept but flagged, and not counted as valid."""
    result = parse_csv("name,endonym\nSpanish,Español\n,NoName\n")

    assert len(result.rows) == 2
    assert result.rows[1].row_number == 3
    issues = _issues(result, 3, "name")
    assert issues and issues[0].severity is Severity.ERROR
    assert result.valid_rows == 1
    assert [r.name for r in result.importable_rows()] == ["Spanish"]


def test_row_numbers_skip_header_and_blank_lines():
    """The Nth data line is row N+1; blank lines do not consume a number."""
    result = parse_csv("name\nDutch\n\nFrench\n   \nGerman\n")

    assert [r.row_number for r in result.rows] == [2, 3, 4]
    assert result.total_rows == len(result.rows)
    assert result.valid_rows <= result.total_rows


def test_quoted_commas_newlines_and_escaped_quotes():
    content = (
        'name,endonym,notes\n'
        '"Chinese, Mandarin",普通话,"first line\nsecond line"\n'
        'Quoted,"He said ""hi""",plain\n'
    )
    result = parse_csv(content)

    assert result.rows[0].name == "Chinese, Mandarin"
    assert result.rows[0].custom_fields["notes"] == "first line\nsecond line"
    assert result.rows[1].row_number == 3
    assert result.rows[1].endonym == 'He said "hi"'


def test_unbalanced_quote_skips_only_that_row():
    """A record whose quote never closes is reported and parsing resumes after it."""
    result = parse_csv('name\n"Broken\nGood\n')

    assert [r.name for r in result.rows] == ["Good"]
    assert result.rows[0].row_number == 3
    assert result.skipped_rows == 1
    assert _issues(result, 2, "row")[0].is_error
    assert "Malformed" in _issues(result, 2, "row")[0].message


def test_truncates_at_max_rows_with_file_warning():
    content = "name\n" + "".join(f"Lang{i}\n" for i in range(4))
    result = parse_csv(content, ParseOptions(max_rows=3))

    assert result.total_rows == 3
    assert len(result.file_warnings) == 1
    assert "3" in result.file_warnings[0]


def test_exactly_max_rows_has_no_warning():
    content = "name\n" + "".join(f"Lang{i}\n" for i in range(3))
    result = parse_csv(content, ParseOptions(max_rows=3))

    assert result.total_rows == 3
    assert result.file_warnings == ()


def test_iso_code_normalized_and_checked():
    result = parse_csv("name,iso_639_3_code\nEnglish,ENG\nBad,en\n")

    assert result.rows[0].iso_639_3_code == "eng"
    assert not _issues(result, 2, "iso_639_3_code")
    assert _issues(result, 3, "iso_639_3_code")[0].is_error


def test_bom_and_crlf_are_handled():
    result = parse_csv(b"\xef\xbb\xbfname,endonym\r\nFrench,Fran\xc3\xa7ais\r\n")

    assert result.headers == ("name", "endonym")
    assert result.rows[0].endonym == "Français"


def test_invalid_utf8_raises():
    with pytest.raises(ParseError):
        parse_csv(b"name\n\xff\xfe\n")


def test_oversized_file_raises_before_parsing():
    with pytest.raises(ParseError, match="exceeds maximum"):
        parse_csv(b"name\nEnglish\n", ParseOptions(max_file_size=5))


def test_empty_file_raises():
    with pytest.raises(ParseError, match="empty"):
        parse_csv(b"")


def test_duplicate_headers_raise():
    with pytest.raises(ParseError, match="duplicate"):
        parse_csv("name,endonym,Name\nA,B,C\n")


def test_missing_required_column_raises():
    with pytest.raises(ParseError, match="Missing required columns: name"):
        parse_csv("endonym\nEspañol\n")


def test_aliases_custom_and_taxonomy_columns():
    content = "Name,iso_code,family,size,Notes,name_nl\nSpanish,SPA,Indo-European,large,x,Spaans\n"
    result = parse_csv(content, ParseOptions(taxonomy_slugs=("size",), locales=("en", "nl")))
    row = result.rows[0]

    assert row.name == "Spanish"
    assert row.iso_639_3_code == "spa"
    assert row.language_family == "Indo-European"
    assert row.taxonomies == {"size": "large"}
    assert row.custom_fields == {"Notes": "x"}
    assert row.translations == {"nl": "Spaans"}
    assert result.taxonomy_columns == ("size",)
    assert result.custom_columns == ("Notes",)
    assert result.mappable_columns == ("size", "Notes")


def test_canonical_column_wins_over_alias():
    result = parse_csv("name,iso_code,iso_639_3_code\nSpanish,xxx,spa\n")

    assert result.rows[0].iso_639_3_code == "spa"


def test_extra_cells_produce_warning():
    result = parse_csv("name\nSpanish,surplus\n")

    issues = _issues(result, 2, "row")
    assert issues[0].severity is Severity.WARNING
    assert result.valid_rows == 1


def test_warnings_do_not_block_rows():
    result = parse_csv("name\nSpanish\n")

    assert _issues(result, 2, "endonym")[0].severity is Severity.WARNING
    assert result.valid_rows == 1


def test_stray_quotes_in_unquoted_values_keep_every_row():
    """A lone quote inside a plain value must not swallow the following lines."""
    result = parse_csv('name\nO"Brien\nGood\nD"Arcy\nLast\n')

    assert [(r.row_number, r.name) for r in result.rows] == [
        (2, 'O"Brien'), (3, "Good"), (4, 'D"Arcy'), (5, "Last"),
    ]
    assert result.skipped_rows == 0
    assert not _issues(result, 2, "row")


def test_malformed_lines_only_skip_themselves():
    """An unclosed quote marks its own line only; the next line is read normally."""
    result = parse_csv('name,notes\n"a"b,x\nGood,"y\nLast\n')

    assert _issues(result, 2, "row")[0].is_error
    assert result.skipped_rows == 2
    assert [(r.row_number, r.name) for r in result.rows] == [(4, "Last")]
