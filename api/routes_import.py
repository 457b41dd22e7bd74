"""
api.routes_import - /api/v1/cities/<city>/import endpoints.

Accepts CSV via multipart file upload (field 'csv_file') or raw request
body.  The mapping wizard state lives in the client; the import call
re-parses the file and replays the submitted mappings server side.
"""

import json

from flask import Response, request, jsonify

import config
from api import api_bp
from db import get_session
from import_engine import (
    ImportOptions, MappingError, ParseError, ParseOptions, TaxonomyMapper,
    generate_template, parse_csv, run_import, template_filename,
)
from services.taxonomy_service import TaxonomyService, active_locales


def _param(name: str, default: str = "") -> str:
    return request.form.get(name) or request.args.get(name) or default


def _read_upload() -> bytes:
    if request.content_type and "multipart" in request.content_type:
        f = request.files.get("csv_file")
        if not f:
            raise ParseError("no csv_file in upload")
        if f.filename and not f.filename.lower().endswith(".csv"):
            raise ParseError("Invalid file type. Only CSV files are supported.")
        content = f.read()
    else:
        content = request.get_data()

    if not content:
        raise ParseError("empty body")
    return content


def _reference_data(city_slug: str, locale: str):
    session = get_session()
    try:
        types = TaxonomyService.types_for_mapping(session, city_slug, locale)
        locales = active_locales(session)
    finally:
        session.close()
    return types, locales


def _parse_upload(types, locales):
    options = ParseOptions(
        max_file_size=config.IMPORT_MAX_FILE_SIZE,
        max_rows=config.IMPORT_MAX_ROWS,
        taxonomy_slugs=TaxonomyService.slugs(types),
        locales=tuple(locales),
    )
    return parse_csv(_read_upload(), options)


@api_bp.route("/cities/<city_slug>/import/taxonomy-types")
def import_taxonomy_types(city_slug: str):
    """GET /api/v1/cities/{city}/import/taxonomy-types?locale=en"""
    types, _ = _reference_data(city_slug, _param("locale", config.DEFAULT_LOCALE))
    return jsonify([t.to_dict() for t in types])


@api_bp.route("/cities/<city_slug>/import/preview", methods=["POST"])
def import_preview(city_slug: str):
    """
    POST /api/v1/cities/{city}/import/preview

    Parse and validate without writing.  Adds the distinct values of every
    taxonomy column and a suggested starting mapping for the wizard.
    """
    types, locales = _reference_data(city_slug, _param("locale", config.DEFAULT_LOCALE))
    result = _parse_upload(types, locales)

    mapper = TaxonomyMapper(result.mappable_columns, result.rows, types)
    mapper.preselect_types()
    for column in mapper.columns:
        mapper.apply_suggestions(column)

    body = result.to_dict()
    body["unique_values"] = {c: mapper.get_unique_values(c) for c in mapper.columns}
    body["unmapped_values"] = {c: mapper.unmapped_values(c) for c in mapper.columns}
    body["suggested_mappings"] = [m.to_dict() for m in mapper.to_mappings()]
    return jsonify(body)


@api_bp.route("/cities/<city_slug>/import", methods=["POST"])
def import_languages(city_slug: str):
    """
    POST /api/v1/cities/{city}/import

    Multipart: 'csv_file', plus optional form fields
      locale=en, update_existing=0|1,
      mappings=[{"csv_column", "taxonomy_type_id", "value_mapping"}]
    Only rows without validation errors are submitted to the importer.
    """
    locale = _param("locale", config.DEFAULT_LOCALE)
    update_existing = _param("update_existing", "0") == "1"

    try:
        payload = json.loads(_param("mappings", "[]"))
    except json.JSONDecodeError as exc:
        raise MappingError(f"mappings is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise MappingError("mappings must be a list")

    types, locales = _reference_data(city_slug, locale)
    result = _parse_upload(types, locales)
    mapper = TaxonomyMapper.from_payload(payload, result.mappable_columns, result.rows, types)

    summary = run_import(
        result.importable_rows(),
        ImportOptions(
            city_slug=city_slug,
            locale=locale,
            taxonomy_mappings=mapper.to_mappings(),
            update_existing=update_existing,
        ),
    )

    body = summary.to_dict()
    body["parse"] = {
        "total_rows": result.total_rows,
        "valid_rows": result.valid_rows,
        "skipped_rows": result.skipped_rows,
    }
    return jsonify(body)


@api_bp.route("/cities/<city_slug>/import/template")
def import_template(city_slug: str):
    """
    GET /api/v1/cities/{city}/import/template?taxonomies=size,status&example=1

    Without 'taxonomies' every taxonomy slug of the city becomes a column.
    """
    types, _ = _reference_data(city_slug, config.DEFAULT_LOCALE)
    requested = request.args.get("taxonomies")
    if requested is None:
        slugs = list(TaxonomyService.slugs(types))
    else:
        slugs = [s for s in requested.split(",") if s.strip()]

    text = generate_template(slugs, include_example=request.args.get("example") == "1")
    return Response(
        text,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{template_filename(city_slug)}"'},
    )
