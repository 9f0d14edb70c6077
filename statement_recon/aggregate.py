"""Two-level category aggregation.

Builds the main category -> subcategory -> rows hierarchy from a
:data:`~statement_recon.models.CategoryTree` and sums it. A main category whose
value is a list is "flat" and acts as its own single subcategory. A main
category whose value is a mapping holds subcategory blobs in any shape
accepted by :func:`~statement_recon.normalizers.normalize_transactions`.

Pseudo-categories (see :mod:`statement_recon.categories`) contribute to
``sub_totals`` and ``sub_to_rows`` but not to ``main_totals`` or
``total_from_categories``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from .categories import is_pseudo_category, subcategory_key
from .logging_setup import get_logger
from .models import CategoryAggregation, SubcategorySummary, TransactionRow
from .normalizers import normalize_transactions

_logger = get_logger("statement_recon.aggregate")


def _row_sum(rows: list[TransactionRow]) -> float:
    return math.fsum(r.amount for r in rows)


def aggregate_categories(tree: Mapping[str, Any] | None) -> CategoryAggregation:
    """Aggregate ``tree`` into category totals.

    Never raises on malformed input: unnamed categories and main categories
    that are neither lists nor mappings are skipped.
    """

    sub_totals: dict[str, float] = {}
    main_totals: dict[str, float] = {}
    main_to_subs: dict[str, list[SubcategorySummary]] = {}
    sub_to_rows: dict[str, list[TransactionRow]] = {}
    if not isinstance(tree, Mapping):
        return CategoryAggregation()

    for main_name, value in tree.items():
        if not str(main_name).strip():
            _logger.debug("skipping unnamed main category")
            continue

        if isinstance(value, list):
            entries: list[tuple[str, Any]] = [(main_name, value)]
        elif isinstance(value, Mapping):
            entries = [(sub, blob) for sub, blob in value.items() if str(sub).strip()]
        else:
            _logger.debug("skipping main category %r with %s value", main_name, type(value).__name__)
            continue

        subs = main_to_subs.setdefault(main_name, [])
        counted: list[float] = []
        for sub_name, blob in entries:
            rows = normalize_transactions(blob)
            sub_sum = _row_sum(rows)
            sub_totals[sub_name] = sub_totals.get(sub_name, 0.0) + sub_sum
            sub_to_rows.setdefault(subcategory_key(main_name, sub_name), []).extend(rows)
            subs.append(SubcategorySummary(name=sub_name, amount=sub_sum, row_count=len(rows)))
            if not is_pseudo_category(sub_name):
                counted.append(sub_sum)
        main_totals[main_name] = math.fsum(counted)

    return CategoryAggregation(
        sub_totals=sub_totals,
        main_totals=main_totals,
        main_to_subs=main_to_subs,
        sub_to_rows=sub_to_rows,
        total_from_categories=math.fsum(main_totals.values()),
    )
