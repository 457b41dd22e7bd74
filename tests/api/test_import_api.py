import io
import json

import pytest
from sqlalchemy import select

from db.models import Language
from tests.factories import CityFactory, LanguageFactory, TaxonomyTypeFactory, TaxonomyValueFactory


@pytest.fixture
def city(client, locale_en):
    city = CityFactory(slug="amsterdam")
    ttype = TaxonomyTypeFactory(city_id=city.id, slug="size", name="Community size")
    TaxonomyValueFactory(taxonomy_type_id=ttype.id, slug="large", name="Large")
    TaxonomyValueFactory(taxonomy_type_id=ttype.id, slug="small", name="Small")
    return city


def _upload(content, filename="languages.csv", **fields):
    data = {"csv_file": (io.BytesIO(content), filename)}
    data.update(fields)
    return {"data": data, "content_type": "multipart/form-data"}


def test_taxonomy_types_listing(client, city):
    response = client.get("/api/v1/cities/amsterdam/import/taxonomy-types")

    assert response.status_code == 200
    (size,) = response.get_json()
    assert size["slug"] == "size"
    assert size["name"] == "Community size"
    assert [v["slug"] for v in size["values"]] == ["large", "small"]


def test_unknown_city_is_404(client, locale_en):
    response = client.get("/api/v1/cities/atlantis/import/taxonomy-types")

    assert response.status_code == 404
    assert response.get_json()["kind"] == "city"


def test_preview_reports_rows_and_suggestions(client, city):
    content = b"name,iso_639_3_code,size\nSpanish,spa,large\n,xx,Small\n"
    response = client.post("/api/v1/cities/amsterdam/import/preview", **_upload(content))

    assert response.status_code == 200
    body = response.get_json()
    assert body["total_rows"] == 2
    assert body["valid_rows"] == 1
    assert {e["field"] for e in body["errors"] if e["row_number"] == 3} >= {"name", "iso_639_3_code"}
    assert body["taxonomy_columns"] == ["size"]
    assert body["unique_values"]["size"] == ["large", "Small"]
    (suggested,) = body["suggested_mappings"]
    assert suggested["csv_column"] == "size"
    assert set(suggested["value_mapping"]) == {"large", "Small"}


def test_preview_accepts_raw_body(client, city):
    response = client.post("/api/v1/cities/amsterdam/import/preview",
                           data=b"name\nDutch\n", content_type="text/csv")

    assert response.status_code == 200
    assert response.get_json()["total_rows"] == 1


def test_preview_rejects_non_csv_upload(client, city):
    response = client.post("/api/v1/cities/amsterdam/import/preview",
                           **_upload(b"name\nDutch\n", filename="languages.xlsx"))

    assert response.status_code == 400
    assert response.get_json()["kind"] == "parse"


def test_preview_rejects_bad_header(client, city):
    response = client.post("/api/v1/cities/amsterdam/import/preview",
                           **_upload(b"endonym\nNederlands\n"))

    assert response.status_code == 400
    assert "Missing required columns" in response.get_json()["error"]


def test_import_with_mappings(client, city, db_session):
    types = client.get("/api/v1/cities/amsterdam/import/taxonomy-types").get_json()
    size = types[0]
    large_id = size["values"][0]["id"]
    mappings = [{"csv_column": "size", "taxonomy_type_id": size["id"],
                 "value_mapping": {"large": large_id}}]
    content = b"name,size\nSpanish,large\n,large\nDutch,small\n"

    response = client.post("/api/v1/cities/amsterdam/import",
                           **_upload(content, mappings=json.dumps(mappings)))

    assert response.status_code == 200
    body = response.get_json()
    assert body["total"] == body["successful"] == 2
    assert body["failed"] == 0
    assert body["parse"] == {"total_rows": 3, "valid_rows": 2, "skipped_rows": 0}
    langs = {l.name_in("en"): l for l in db_session.scalars(
        select(Language).where(Language.city_id == city.id))}
    assert [t.taxonomy_value_id for t in langs["Spanish"].taxonomy_links] == [large_id]
    assert langs["Dutch"].taxonomy_links == []


def test_import_reports_collisions_per_row(client, city):
    LanguageFactory(city_id=city.id, name="Spanish")

    response = client.post("/api/v1/cities/amsterdam/import",
                           **_upload(b"name\nSpanish\nDutch\n"))

    body = response.get_json()
    assert (body["total"], body["successful"], body["failed"]) == (2, 1, 1)
    assert body["results"][0]["error"]


def test_import_rejects_malformed_mappings(client, city):
    response = client.post("/api/v1/cities/amsterdam/import",
                           **_upload(b"name\nSpanish\n", mappings="{not json"))

    assert response.status_code == 400
    assert response.get_json()["kind"] == "mapping"


def test_import_rejects_unknown_type(client, city):
    mappings = [{"csv_column": "size", "taxonomy_type_id": "nope", "value_mapping": {}}]
    response = client.post("/api/v1/cities/amsterdam/import",
                           **_upload(b"name,size\nSpanish,large\n", mappings=json.dumps(mappings)))

    assert response.status_code == 400


def test_template_download(client, city):
    response = client.get("/api/v1/cities/amsterdam/import/template?example=1")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "language-import-template-amsterdam.csv" in response.headers["Content-Disposition"]
    lines = response.get_data(as_text=True).splitlines()
    assert lines[0].endswith(",size")
    assert lines[1].startswith("Spanish,")


def test_template_with_explicit_taxonomies(client, city):
    response = client.get("/api/v1/cities/amsterdam/import/template?taxonomies=")

    assert response.get_data(as_text=True) == (
        "name,endonym,iso_639_3_code,language_family,country_of_origin,speaker_count\n"
    )
