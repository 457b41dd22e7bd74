"""
import_engine.report - Structured result of a CSV import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional


@dataclass(frozen=True)
class ImportResult:
    row_number: int
    success: bool
    language_name: str = ""
    language_id: Optional[str] = None
    action: Optional[str] = None          # "created" | "updated" on success
    error: Optional[str] = None

    @classmethod
    def ok(cls, row_number: int, language_id: str, language_name: str,
           action: str = "created") -> "ImportResult":
        return cls(row_number, True, language_name, language_id, action)

    @classmethod
    def failed(cls, row_number: int, error: str, language_name: str = "") -> "ImportResult":
        return cls(row_number, False, language_name, error=error or "Unknown error")

    def to_dict(self) -> dict:
        d = {
            "row_number": self.row_number,
            "success": self.success,
            "language_name": self.language_name,
        }
        if self.success:
            d["language_id"] = self.language_id
            d["action"] = self.action
        else:
            d["error"] = self.error
        return d


@dataclass(frozen=True)
class ImportSummary:
    total: int = 0
    successful: int = 0
    failed: int = 0
    results: tuple[ImportResult, ...] = field(default_factory=tuple)
    cancelled: bool = False

    @classmethod
    def from_results(cls, results: Iterable[ImportResult],
                     cancelled: bool = False) -> "ImportSummary":
        results = tuple(results)
        ok = sum(1 for r in results if r.success)
        return cls(
            total=len(results),
            successful=ok,
            failed=len(results) - ok,
            results=results,
            cancelled=cancelled,
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "results": [r.to_dict() for r in self.results],
        }
