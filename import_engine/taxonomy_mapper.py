"""
import_engine.taxonomy_mapper - Route CSV columns onto taxonomy types.

Each taxonomy-like column walks a small state machine:

    Unmapped ──select_type──▶ TypeSelected ──map_value──▶ ValuesMapped
        ▲                          ▲   │                      │
        └──────skip_column─────────┴───┴──select_type (new)───┘

Choosing a different type always drops the value mapping, so a mapping
can never point at values of a type the column is no longer routed to.
Columns left Unmapped are simply absent from to_mappings().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence, Union

from import_engine.errors import MappingError
from import_engine.records import CandidateRecord

logger = logging.getLogger(__name__)


# ── Reference data (read-only view of the store) ──────────────────────

@dataclass(frozen=True)
class TaxonomyValueOption:
    id: str
    slug: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "slug": self.slug, "name": self.name}


@dataclass(frozen=True)
class TaxonomyTypeOption:
    id: str
    slug: str
    name: str
    allow_multiple: bool = False
    is_required: bool = False
    values: tuple[TaxonomyValueOption, ...] = ()

    def value(self, value_id: str) -> TaxonomyValueOption | None:
        for v in self.values:
            if v.id == value_id:
                return v
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "allow_multiple": self.allow_multiple,
            "is_required": self.is_required,
            "values": [v.to_dict() for v in self.values],
        }


@dataclass(frozen=True)
class TaxonomyMapping:
    """What the importer needs for one routed column."""
    csv_column: str
    taxonomy_type_id: str
    value_mapping: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "csv_column": self.csv_column,
            "taxonomy_type_id": self.taxonomy_type_id,
            "value_mapping": dict(self.value_mapping),
        }


# ── Column states ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class Unmapped:
    pass


@dataclass(frozen=True)
class TypeSelected:
    type_id: str


@dataclass(frozen=True)
class ValuesMapped:
    type_id: str
    value_mapping: Mapping[str, str]


ColumnState = Union[Unmapped, TypeSelected, ValuesMapped]


def _values_state(type_id: str, mapping: dict[str, str]) -> ColumnState:
    if not mapping:
        return TypeSelected(type_id)
    return ValuesMapped(type_id, MappingProxyType(dict(mapping)))


class TaxonomyMapper:
    """
    Mapping session for one upload.  Holds no database handle: the caller
    passes the city's taxonomy types in and takes to_mappings() out.
    """

    def __init__(
        self,
        csv_columns: Iterable[str],
        rows: Sequence[CandidateRecord],
        taxonomy_types: Iterable[TaxonomyTypeOption],
    ):
        self._columns = list(dict.fromkeys(csv_columns))
        self._rows = rows
        self._types = {t.id: t for t in taxonomy_types}
        self._states: dict[str, ColumnState] = {c: Unmapped() for c in self._columns}

    # ── Queries ────────────────────────────────────────────────────────

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def taxonomy_types(self) -> list[TaxonomyTypeOption]:
        return list(self._types.values())

    def state(self, column: str) -> ColumnState:
        self._require_column(column)
        return self._states[column]

    def get_unique_values(self, column: str) -> list[str]:
        """Distinct non-empty trimmed values of a column, sorted."""
        values = set()
        for row in self._rows:
            v = row.column_value(column).strip()
            if v:
                values.add(v)
        return sorted(values, key=lambda v: (v.casefold(), v))

    def unmapped_values(self, column: str) -> list[str]:
        """Values present in the file that the column's mapping does not cover."""
        state = self.state(column)
        if isinstance(state, Unmapped):
            return []
        mapped = state.value_mapping if isinstance(state, ValuesMapped) else {}
        return [v for v in self.get_unique_values(column) if v not in mapped]

    def suggest_values(self, column: str) -> dict[str, str]:
        """
        Raw value → value id for values whose text equals a taxonomy value's
        slug or name (case-insensitive).  Empty when no type is selected.
        """
        state = self.state(column)
        if isinstance(state, Unmapped):
            return {}
        ttype = self._types[state.type_id]
        lookup: dict[str, str] = {}
        for v in ttype.values:
            lookup.setdefault(v.slug.casefold(), v.id)
            lookup.setdefault(v.name.casefold(), v.id)
        return {
            raw: lookup[raw.casefold()]
            for raw in self.get_unique_values(column)
            if raw.casefold() in lookup
        }

    # ── Transitions ────────────────────────────────────────────────────

    def select_type(self, column: str, type_id: str) -> ColumnState:
        self._require_column(column)
        if type_id not in self._types:
            raise MappingError(f"Unknown taxonomy type {type_id!r} for column {column!r}")

        current = self._states[column]
        if isinstance(current, (TypeSelected, ValuesMapped)) and current.type_id == type_id:
            return current

        self._states[column] = TypeSelected(type_id)
        return self._states[column]

    def skip_column(self, column: str) -> ColumnState:
        self._require_column(column)
        self._states[column] = Unmapped()
        return self._states[column]

    def map_value(self, column: str, raw_value: str, value_id: str) -> ColumnState:
        state = self.state(column)
        if isinstance(state, Unmapped):
            raise MappingError(f"Select a taxonomy type for column {column!r} first")

        raw = raw_value.strip()
        if not raw:
            raise MappingError(f"Cannot map an empty value in column {column!r}")

        ttype = self._types[state.type_id]
        if ttype.value(value_id) is None:
            raise MappingError(
                f"Taxonomy value {value_id!r} does not belong to type {ttype.slug!r}"
            )

        mapping = dict(state.value_mapping) if isinstance(state, ValuesMapped) else {}
        mapping[raw] = value_id
        self._states[column] = _values_state(state.type_id, mapping)
        return self._states[column]

    def unmap_value(self, column: str, raw_value: str) -> ColumnState:
        state = self.state(column)
        if not isinstance(state, ValuesMapped):
            return state
        mapping = dict(state.value_mapping)
        mapping.pop(raw_value.strip(), None)
        self._states[column] = _values_state(state.type_id, mapping)
        return self._states[column]

    def apply_suggestions(self, column: str) -> ColumnState:
        """Map every suggested value not already mapped by hand."""
        state = self.state(column)
        for raw, value_id in self.suggest_values(column).items():
            if isinstance(state, ValuesMapped) and raw in state.value_mapping:
                continue
            state = self.map_value(column, raw, value_id)
        return state

    def preselect_types(self) -> None:
        """Columns named after a type slug start out routed to that type."""
        by_slug = {t.slug.casefold(): t.id for t in self._types.values()}
        for column in self._columns:
            type_id = by_slug.get(column.strip().casefold())
            if type_id and isinstance(self._states[column], Unmapped):
                self._states[column] = TypeSelected(type_id)

    # ── Export ─────────────────────────────────────────────────────────

    def to_mappings(self) -> list[TaxonomyMapping]:
        out = []
        for column in self._columns:
            state = self._states[column]
            if isinstance(state, Unmapped):
                continue
            mapping = dict(state.value_mapping) if isinstance(state, ValuesMapped) else {}
            out.append(TaxonomyMapping(column, state.type_id, MappingProxyType(mapping)))
        return out

    @classmethod
    def from_payload(
        cls,
        payload: Iterable[Mapping],
        csv_columns: Iterable[str],
        rows: Sequence[CandidateRecord],
        taxonomy_types: Iterable[TaxonomyTypeOption],
    ) -> "TaxonomyMapper":
        """
        Rebuild a mapper from a client-submitted list of
        {csv_column, taxonomy_type_id, value_mapping} objects, replaying
        every choice through the same transitions.  Raises MappingError.
        """
        mapper = cls(csv_columns, rows, taxonomy_types)
        for item in payload:
            if not isinstance(item, Mapping):
                raise MappingError("Each mapping must be an object")
            column = item.get("csv_column")
            type_id = item.get("taxonomy_type_id")
            if not column:
                raise MappingError("Mapping is missing csv_column")
            if not type_id:
                mapper.skip_column(column)
                continue
            mapper.select_type(column, type_id)
            value_mapping = item.get("value_mapping") or {}
            if not isinstance(value_mapping, Mapping):
                raise MappingError(f"value_mapping for {column!r} must be an object")
            present = set(mapper.get_unique_values(column))
            for raw, value_id in value_mapping.items():
                if raw.strip() not in present:
                    logger.debug(f"Mapping for {raw!r} in {column!r} matches no value in the file")
                if value_id:
                    mapper.map_value(column, raw, value_id)
        logger.debug(f"Rebuilt taxonomy mapping for {len(mapper.to_mappings())} column(s)")
        return mapper

    # ── Private helpers ────────────────────────────────────────────────

    def _require_column(self, column: str) -> None:
        if column not in self._states:
            raise MappingError(f"Unknown CSV column {column!r}")
