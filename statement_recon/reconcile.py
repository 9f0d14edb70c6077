"""Revenue reconciliation between reported deposits and category totals.

``difference`` is the reported total deposits minus the selection-adjusted
category total. The figure shown to the reviewer prefers, in order:

1. the optimistic override recorded by the last successful save in this
   session (until the persisted value catches up);
2. the previously persisted monthly revenue;
3. the freshly computed ``difference``.

Overrides and persisted values only count when finite and non-zero.
"""

from __future__ import annotations

import math
from typing import Any

from .amounts import parse_amount
from .logging_setup import get_logger
from .models import CategoryAggregation, Reconciliation, SavePayload
from .persistence import SaveStore
from .selection import SelectionState

_logger = get_logger("statement_recon.reconcile")

_CENT = 0.005


def _usable(n: float | None) -> bool:
    return n is not None and math.isfinite(n) and n != 0


class RevenueReconciler:
    """Session-scoped reconciler holding the optimistic save override.

    The override is cleared once a persisted revenue value arrives that is
    usable and differs from the persisted value seen when the save happened
    (or, with no value seen before the save, once it equals the override).
    This is a change-detection heuristic, not a read-after-write guarantee: a
    store that persists the same figure that was already there will keep the
    override in place, which displays the same number anyway.
    """

    def __init__(self) -> None:
        self.optimistic_override: float | None = None
        self._last_persisted: float | None = None
        self._persisted_at_save: float | None = None

    def observe_persisted(self, saved_monthly_revenue: Any) -> bool:
        """Record the latest persisted revenue; return ``True`` if the override was cleared.

        When no persisted value was seen before the save, the baseline is
        unknown and only a value matching the override counts as caught up.
        """

        n = parse_amount(saved_monthly_revenue)
        cleared = False
        if self.optimistic_override is not None and _usable(n) and self._caught_up(n):
            _logger.debug("persisted revenue %.2f arrived; clearing optimistic override", n)
            self.optimistic_override = None
            cleared = True
        self._last_persisted = n
        return cleared

    def _caught_up(self, n: float) -> bool:
        if self._persisted_at_save is None:
            return math.isclose(n, self.optimistic_override or 0.0, abs_tol=_CENT)
        return n != self._persisted_at_save

    def reconcile(
        self,
        reported_total_deposits: Any,
        selection_adjusted_total: Any,
        saved_monthly_revenue: Any = None,
    ) -> Reconciliation:
        self.observe_persisted(saved_monthly_revenue)

        selected_total = parse_amount(selection_adjusted_total)
        difference = parse_amount(reported_total_deposits) - selected_total
        saved = parse_amount(saved_monthly_revenue)

        if _usable(self.optimistic_override):
            displayed = float(self.optimistic_override)  # type: ignore[arg-type]
        elif _usable(saved):
            displayed = saved
        else:
            displayed = difference

        return Reconciliation(
            selected_total_from_categories=selected_total,
            difference=difference,
            displayed_difference=displayed,
        )

    def build_save_payload(
        self,
        document_id: str,
        selection: SelectionState,
        aggregation: CategoryAggregation,
        reported_total_deposits: Any,
    ) -> SavePayload:
        effective_main_totals = selection.effective_main_totals(aggregation)
        selected_total = math.fsum(effective_main_totals.values())
        return SavePayload(
            document_id=document_id,
            selection=selection.snapshot(),
            selected_total_from_categories=selected_total,
            effective_main_totals=effective_main_totals,
            difference=parse_amount(reported_total_deposits) - selected_total,
        )

    def save(self, payload: SavePayload, store: SaveStore, persisted_revenue: Any = None) -> SavePayload:
        """Hand ``payload`` to ``store`` and, on success, show its difference optimistically.

        ``persisted_revenue`` is the stored monthly revenue as the caller last
        read it; it becomes the baseline for clearing the override. Store
        exceptions propagate and leave the override unchanged.
        """

        if persisted_revenue is not None:
            self.observe_persisted(persisted_revenue)
        store.save(payload)
        self.optimistic_override = payload.difference
        self._persisted_at_save = self._last_persisted
        _logger.info("saved reconciliation for %s (difference %.2f)", payload.document_id, payload.difference)
        return payload
