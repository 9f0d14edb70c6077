"""Per-subcategory row inclusion overlay.

A :class:`SelectionState` belongs to one review session. It maps
``"main::sub"`` keys to the set of included row indices:

- no entry for a key means every row is included;
- an empty set means no row is included.

Sets are materialized lazily on the first toggle for a key. Effective totals
re-sum rows through the overlay; they never error, and out-of-range indices
are ignored.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from .categories import is_pseudo_category, subcategory_key
from .models import CategoryAggregation, TransactionRow


def _addressable(sel: set[int], rows: Sequence[TransactionRow]) -> set[int]:
    return {i for i in sel if 0 <= i < len(rows)}


class SelectionState:
    """Mutable inclusion masks for one document review.

    Not thread-safe; hosts serialize mutations per session.
    """

    def __init__(self, included: Mapping[str, set[int]] | None = None) -> None:
        self._included: dict[str, set[int]] = {k: set(v) for k, v in (included or {}).items()}

    # -- queries -----------------------------------------------------------

    def is_materialized(self, key: str) -> bool:
        return key in self._included

    def included_indices(self, key: str, rows: Sequence[TransactionRow]) -> set[int]:
        if key in self._included:
            return set(self._included[key])
        return set(range(len(rows)))

    def is_included(self, key: str, index: int) -> bool:
        sel = self._included.get(key)
        return sel is None or index in sel

    def selected_count(self, key: str, rows: Sequence[TransactionRow]) -> int:
        sel = self._included.get(key)
        return len(rows) if sel is None else len(_addressable(sel, rows))

    def effective_amount(self, key: str, rows: Sequence[TransactionRow]) -> float:
        sel = self._included.get(key)
        if sel is None:
            return math.fsum(r.amount for r in rows)
        return math.fsum(r.amount for i, r in enumerate(rows) if i in sel)

    def effective_main_total(self, aggregation: CategoryAggregation, main: str) -> float:
        """Re-sum ``main``'s subcategories through the overlay.

        Business-identity and funder-list subcategories are left out, matching
        the exclusion applied to ``main_totals``.
        """

        amounts: list[float] = []
        for s in aggregation.main_to_subs.get(main, []):
            if is_pseudo_category(s.name):
                continue
            key = subcategory_key(main, s.name)
            amounts.append(self.effective_amount(key, aggregation.rows_for(key)))
        return math.fsum(amounts)

    def effective_main_totals(self, aggregation: CategoryAggregation) -> dict[str, float]:
        return {main: self.effective_main_total(aggregation, main) for main in aggregation.main_to_subs}

    def selected_total(self, aggregation: CategoryAggregation) -> float:
        """Selection-adjusted counterpart of ``total_from_categories``."""

        return math.fsum(self.effective_main_totals(aggregation).values())

    # -- transitions -------------------------------------------------------

    def toggle_row(self, key: str, index: int, rows: Sequence[TransactionRow]) -> None:
        if not 0 <= index < len(rows):
            return
        sel = self._included.get(key)
        if sel is None:
            # First toggle: everything except this row
            self._included[key] = set(range(len(rows))) - {index}
            return
        if index in sel:
            sel.remove(index)
        else:
            sel.add(index)

    def toggle_all(self, key: str, rows: Sequence[TransactionRow]) -> None:
        sel = self._included.get(key)
        currently_all = sel is None or len(_addressable(sel, rows)) == len(rows)
        self._included[key] = set() if currently_all else set(range(len(rows)))

    def reset(self, key: str | None = None) -> None:
        """Drop the mask for ``key`` (or every mask), restoring full inclusion."""

        if key is None:
            self._included.clear()
        else:
            self._included.pop(key, None)

    # -- persistence shape -------------------------------------------------

    def snapshot(self) -> dict[str, list[int]]:
        return {k: sorted(v) for k, v in self._included.items()}

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Sequence[int]] | None) -> SelectionState:
        """Restore a state saved by :meth:`snapshot`; non-integer and negative indices are dropped."""

        included: dict[str, set[int]] = {}
        for key, indices in (snapshot or {}).items():
            if isinstance(indices, str) or not isinstance(indices, Sequence):
                continue
            included[str(key)] = {i for i in indices if isinstance(i, int) and not isinstance(i, bool) and i >= 0}
        return cls(included)

    def __len__(self) -> int:
        return len(self._included)

    def __repr__(self) -> str:
        return f"SelectionState({self.snapshot()!r})"
