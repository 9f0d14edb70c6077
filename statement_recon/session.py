"""One reviewer's reconciliation session over a single statement.

:class:`ReviewSession` owns every piece of mutable review state (row
selection, funder selection, the optimistic save override) and recomputes
figures on demand from the immutable aggregation. Sessions share nothing, so
concurrent reviews of different documents need no locking.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .aggregate import aggregate_categories
from .categories import merge_pseudo_categories, subcategory_key
from .documents import category_months, reported_total_deposits, saved_monthly_revenue, statement_month
from .funders import compute_holdback, normalize_funder_records
from .logging_setup import get_logger
from .models import (
    CategoryAggregation,
    HoldbackResult,
    MCAItem,
    Reconciliation,
    SavePayload,
    TransactionRow,
)
from .persistence import SaveStore
from .reconcile import RevenueReconciler
from .selection import SelectionState

_logger = get_logger("statement_recon.session")


@dataclass(frozen=True, slots=True)
class MainCategoryView:
    """Presentation figures for one main category."""

    name: str
    total: float
    effective_total: float
    subcategory_count: int
    included_subcategories: int


class ReviewSession:
    def __init__(
        self,
        tree: Mapping[str, Any] | None,
        *,
        reported_total_deposits: Any = 0,
        saved_monthly_revenue: Any = None,
        business_owner: Any = None,
        funder_list: Any = None,
        funder_records: Any = None,
        document_id: str | None = None,
        month: str = "",
        selection: SelectionState | None = None,
    ) -> None:
        self.document_id = document_id
        self.month = month
        self.reported_total_deposits = reported_total_deposits
        self.saved_monthly_revenue = saved_monthly_revenue
        self.aggregation: CategoryAggregation = aggregate_categories(
            merge_pseudo_categories(tree, business_owner=business_owner, funder_list=funder_list)
        )
        self.selection = selection if selection is not None else SelectionState()
        self.reconciler = RevenueReconciler()
        self.mca_items: list[MCAItem] = normalize_funder_records(funder_records)
        self.funder_selection: set[int] | None = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any], *, month: str | None = None) -> ReviewSession:
        """Build a session from a statement document record.

        When the ``categories`` payload spans several months, ``month`` picks
        one; otherwise the document's own month, then the first month found,
        is used.
        """

        months = category_months(document.get("categories"))
        doc_month = statement_month(document)
        chosen = month or doc_month
        if chosen not in months:
            chosen = next(iter(months), chosen)
        if month and month not in months:
            _logger.warning("month %s not present in categories; using %r", month, chosen)

        doc_id = document.get("document_id") or document.get("id")
        return cls(
            months.get(chosen, {}),
            reported_total_deposits=reported_total_deposits(document),
            saved_monthly_revenue=saved_monthly_revenue(document),
            business_owner=document.get("business_owner"),
            funder_list=document.get("funder_list"),
            funder_records=document.get("funders"),
            document_id=str(doc_id) if doc_id is not None else None,
            month=chosen or doc_month,
        )

    # -- row selection -----------------------------------------------------

    def rows(self, main: str, sub: str | None = None) -> list[TransactionRow]:
        return self.aggregation.rows_for(subcategory_key(main, sub))

    def toggle_row(self, main: str, sub: str | None, index: int) -> None:
        key = subcategory_key(main, sub)
        self.selection.toggle_row(key, index, self.aggregation.rows_for(key))

    def toggle_all(self, main: str, sub: str | None = None) -> None:
        key = subcategory_key(main, sub)
        self.selection.toggle_all(key, self.aggregation.rows_for(key))

    def effective_amount(self, main: str, sub: str | None = None) -> float:
        key = subcategory_key(main, sub)
        return self.selection.effective_amount(key, self.aggregation.rows_for(key))

    def main_categories(self) -> list[MainCategoryView]:
        effective = self.selection.effective_main_totals(self.aggregation)
        views: list[MainCategoryView] = []
        for main, subs in self.aggregation.main_to_subs.items():
            included = sum(1 for s in subs if self.effective_amount(main, s.name) > 0)
            views.append(
                MainCategoryView(
                    name=main,
                    total=self.aggregation.main_totals.get(main, 0.0),
                    effective_total=effective.get(main, 0.0),
                    subcategory_count=len(subs),
                    included_subcategories=included,
                )
            )
        return views

    # -- reconciliation ----------------------------------------------------

    def reconcile(self) -> Reconciliation:
        return self.reconciler.reconcile(
            self.reported_total_deposits,
            self.selection.selected_total(self.aggregation),
            self.saved_monthly_revenue,
        )

    def observe_saved_revenue(self, value: Any) -> None:
        """Feed a freshly persisted monthly revenue back into the session."""

        self.saved_monthly_revenue = value
        self.reconciler.observe_persisted(value)

    def save_payload(self) -> SavePayload:
        if not self.document_id:
            raise ValueError("ReviewSession.document_id is required to save")
        return self.reconciler.build_save_payload(
            self.document_id, self.selection, self.aggregation, self.reported_total_deposits
        )

    def save(self, store: SaveStore) -> SavePayload:
        payload = self.save_payload()
        return self.reconciler.save(payload, store, self.saved_monthly_revenue)

    # -- funders -----------------------------------------------------------

    def toggle_funder(self, index: int) -> None:
        if not 0 <= index < len(self.mca_items):
            return
        if self.funder_selection is None:
            self.funder_selection = set(range(len(self.mca_items)))
        self.funder_selection ^= {index}

    def holdback(self, revenue: Any = None) -> HoldbackResult:
        """Holdback over the selected funders against ``revenue`` (default: displayed difference)."""

        if revenue is None:
            revenue = self.reconcile().displayed_difference
        return compute_holdback(self.mca_items, self.funder_selection, revenue)
