"""Data models and type aliases for ``statement_recon``.

Extracted statement payloads arrive with no fixed schema: field names drift
between extraction runs, amounts may be numbers or free text, and category
blobs nest in several shapes. Inbound records are therefore kept opaque
(:data:`Record`); only the values this package derives from them get concrete
types here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Inbound shapes
# ---------------------------------------------------------------------------

Record: TypeAlias = Mapping[str, Any]
"""A single extracted record (transaction, funder row) with arbitrary keys."""

CategoryTree: TypeAlias = Mapping[str, Any]
"""Main category name -> list of records, or -> mapping of subcategory blobs."""


# ---------------------------------------------------------------------------
# Derived values
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionRow:
    """A normalized transaction row.

    ``amount`` is signed. ``0.0`` doubles as the "could not resolve" value, so a
    genuine zero-dollar row and an unparseable one look the same downstream.
    """

    date: str
    description: str
    amount: float


@dataclass(frozen=True, slots=True)
class MCAItem:
    """A funder debit normalized to a daily-equivalent amount."""

    period: str
    funder: str
    frequency: str
    raw_amount: float
    is_weekly: bool
    daily_equivalent_amount: float
    notes: str = ""


@dataclass(frozen=True, slots=True)
class SubcategorySummary:
    """Display summary for one subcategory (or a flat main category)."""

    name: str
    amount: float
    row_count: int


@dataclass(frozen=True, slots=True)
class CategoryAggregation:
    """Result of aggregating a :data:`CategoryTree`.

    Attributes
    ----------
    sub_totals:
        Subcategory name -> summed amount. Keyed by bare name, so identically
        named subcategories under different main categories share a bucket.
        Pseudo-categories are included here.
    main_totals:
        Main category -> sum of its non-pseudo subcategories.
    main_to_subs:
        Main category -> subcategory summaries in input order.
    sub_to_rows:
        ``"main::sub"`` key -> normalized rows.
    total_from_categories:
        Sum of ``main_totals``.
    """

    sub_totals: dict[str, float] = field(default_factory=dict)
    main_totals: dict[str, float] = field(default_factory=dict)
    main_to_subs: dict[str, list[SubcategorySummary]] = field(default_factory=dict)
    sub_to_rows: dict[str, list[TransactionRow]] = field(default_factory=dict)
    total_from_categories: float = 0.0

    def rows_for(self, key: str) -> list[TransactionRow]:
        return self.sub_to_rows.get(key, [])


@dataclass(frozen=True, slots=True)
class Reconciliation:
    selected_total_from_categories: float
    difference: float
    displayed_difference: float


@dataclass(frozen=True, slots=True)
class HoldbackResult:
    total_funders: float
    subtotal: float
    ratio: float
    holdback_percent: float


@dataclass(frozen=True, slots=True)
class MonthlyOverview:
    """Deposits and negative days summed over every statement placed in a month."""

    month: str
    total_deposits: float
    negative_days: float
    statement_count: int


# ---------------------------------------------------------------------------
# DTO handed to the persistence collaborator
# ---------------------------------------------------------------------------


class SavePayload(BaseModel):
    """The unit of persistence emitted by a save action.

    ``selection`` maps ``"main::sub"`` keys to the included row indices. Keys
    that were never toggled are absent (all rows included).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    document_id: str
    selection: dict[str, list[int]]
    selected_total_from_categories: float
    effective_main_totals: dict[str, float]
    difference: float

    @field_validator("document_id")
    @classmethod
    def _document_id_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("document_id must be non-empty")
        return v.strip()

    @field_validator("selection")
    @classmethod
    def _sorted_unique_indices(cls, v: dict[str, list[int]]) -> dict[str, list[int]]:
        return {k: sorted(set(idx)) for k, idx in v.items()}
