"""
import_engine.importer - Top-level orchestrator.

Coordinates row_processor → per-row DB commit and produces a structured
ImportSummary.  Every row is its own transaction: a rejected row is
rolled back and recorded, and the next row starts from a clean session.
Only problems that make the whole batch meaningless are raised.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError

import config
from db.engine import get_session
from import_engine.errors import ImportConfigError
from import_engine.records import CandidateRecord
from import_engine.report import ImportResult, ImportSummary
from import_engine.row_processor import RowError, RowProcessor
from import_engine.taxonomy_mapper import TaxonomyMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportOptions:
    city_slug: str
    locale: str = config.DEFAULT_LOCALE
    taxonomy_mappings: Sequence[TaxonomyMapping] = ()
    skip_errors: bool = True
    update_existing: bool = False


def run_import(
    rows: Iterable[CandidateRecord],
    options: ImportOptions,
    *,
    cancel_event: Optional[threading.Event] = None,
) -> ImportSummary:
    """
    Import candidate rows into the city named by options.city_slug.

    Parameters
    ----------
    rows : validated CandidateRecords (processed in ascending row_number)
    options : target city, locale, taxonomy mappings, update behaviour
    cancel_event : when set, no further rows are started

    Returns
    -------
    ImportSummary with one ImportResult per attempted row

    Raises
    ------
    CityNotFoundError, ImportConfigError before any write;
    OperationalError / InterfaceError when the database goes away.
    """
    if not options.skip_errors:
        raise ImportConfigError(
            "Stopping at the first failed row is not supported; "
            "rows are always imported independently"
        )

    # services imports import_engine types, so resolve it at call time
    from services.taxonomy_service import TaxonomyService, active_locales, get_city

    ordered = sorted(rows, key=lambda r: r.row_number)
    results: list[ImportResult] = []
    cancelled = False

    session = get_session()
    try:
        city = get_city(session, options.city_slug)
        locales = active_locales(session)
        if options.locale not in locales:
            raise ImportConfigError(f"Unknown or inactive locale: {options.locale}")

        processor = RowProcessor(
            session,
            city_id=city.id,
            locale=options.locale,
            locales=locales,
            taxonomy_types=TaxonomyService.types_for_mapping(
                session, options.city_slug, options.locale),
            mappings=options.taxonomy_mappings,
            update_existing=options.update_existing,
        )
        logger.info(f"Importing {len(ordered)} rows into {options.city_slug!r} "
                    f"(locale={options.locale}, update_existing={options.update_existing})")

        for row in ordered:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.warning(f"Import cancelled before row {row.row_number}")
                break
            result = _import_row(session, processor, row)
            if not result.success:
                logger.warning(f"Row {row.row_number} not imported: {result.error}")
            results.append(result)
    finally:
        session.close()

    summary = ImportSummary.from_results(results, cancelled=cancelled)
    logger.info(f"Import into {options.city_slug!r} finished: {summary.successful} imported, "
                f"{summary.failed} failed / {summary.total} attempted")
    return summary


def _import_row(session, processor: RowProcessor, row: CandidateRecord) -> ImportResult:
    """Run one row as one transaction and turn row-level failures into results."""
    try:
        language, action = processor.process(row)
        session.commit()
        return ImportResult.ok(row.row_number, language.id, row.name, action)
    except RowError as exc:
        session.rollback()
        return ImportResult.failed(row.row_number, str(exc), row.name)
    except (OperationalError, InterfaceError):
        session.rollback()
        logger.exception(f"Database unavailable while importing row {row.row_number}")
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        return ImportResult.failed(row.row_number, f"Database rejected row: {_db_message(exc)}", row.name)
    except Exception as exc:
        session.rollback()
        logger.exception(f"Unexpected error importing row {row.row_number}")
        return ImportResult.failed(row.row_number, f"Unexpected: {exc}", row.name)


def _db_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)
