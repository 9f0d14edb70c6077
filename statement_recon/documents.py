"""Read reconciliation inputs out of a statement document record.

A statement document is the row the host keeps per uploaded statement: a few
explicit columns (``total_deposits``, ``negative_days``, ``monthly_revenue``,
``month``, ``statement_date``) plus the raw ``extracted_json`` produced
upstream. Explicit columns win; ``extracted_json`` paths are the fallback.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .amounts import parse_amount
from .logging_setup import get_logger
from .models import MonthlyOverview

_logger = get_logger("statement_recon.documents")

_TOTAL_DEPOSITS_PATHS = (
    "total_deposits",
    "summary.total_deposits",
    "mca_summary.total_deposits",
    "totals.total_deposits",
)
_NEGATIVE_DAYS_PATHS = (
    "negative_days",
    "summary.negative_days",
    "mca_summary.negative_days",
    "totals.negative_days",
)
_MONTH_PATHS = ("month", "summary.month", "mca_summary.month")
_MONTH_RE = re.compile(r"^\d{4}-\d{2}")


def get_path(root: Any, path: str) -> Any:
    """Follow a dotted ``path`` through nested mappings; ``None`` when absent."""

    node = root
    for part in path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def _extracted(document: Mapping[str, Any]) -> Mapping[str, Any]:
    ej = document.get("extracted_json")
    if isinstance(ej, str):
        try:
            ej = json.loads(ej)
        except ValueError:
            _logger.debug("extracted_json is not valid JSON")
            return {}
    return ej if isinstance(ej, Mapping) else {}


def _first_path(root: Any, paths: Sequence[str]) -> Any:
    for path in paths:
        v = get_path(root, path)
        if v is not None and v != "":
            return v
    return None


def _column_or_paths(document: Mapping[str, Any], column: str, paths: Sequence[str]) -> float:
    value = document.get(column)
    if value is None:
        value = _first_path(_extracted(document), paths)
    return parse_amount(value) if value is not None else 0.0


def reported_total_deposits(document: Mapping[str, Any]) -> float:
    return _column_or_paths(document, "total_deposits", _TOTAL_DEPOSITS_PATHS)


def negative_days(document: Mapping[str, Any]) -> float:
    return _column_or_paths(document, "negative_days", _NEGATIVE_DAYS_PATHS)


def saved_monthly_revenue(document: Mapping[str, Any]) -> Any:
    """Return the raw persisted monthly revenue (``None`` when never saved)."""

    value = document.get("monthly_revenue")
    if value is not None:
        return value
    ej = _extracted(document)
    value = ej.get("monthly_revenue")
    if value is not None:
        return value
    return get_path(ej, "mca_summary.monthly_revenue")


def statement_month(document: Mapping[str, Any]) -> str:
    month = str(document.get("month") or "").strip()
    if month:
        return month
    raw = str(document.get("statement_date") or "")[:7]
    if _MONTH_RE.match(raw):
        return raw
    m2 = _first_path(_extracted(document), _MONTH_PATHS)
    if isinstance(m2, str) and _MONTH_RE.match(m2):
        return m2[:7]
    return ""


def monthly_overview(documents: Iterable[Mapping[str, Any]]) -> dict[str, MonthlyOverview]:
    """Roll statement documents up by month, oldest month first.

    Several statements can land in one month (multiple accounts); their
    deposits and negative days are summed. Documents with no resolvable month
    are skipped.
    """

    totals: dict[str, list[float]] = {}
    for document in documents:
        if not isinstance(document, Mapping):
            continue
        month = statement_month(document)
        if not month:
            _logger.debug("statement %r has no month; left out of overview", document.get("document_id"))
            continue
        acc = totals.setdefault(month, [0.0, 0.0, 0])
        acc[0] += reported_total_deposits(document)
        acc[1] += negative_days(document)
        acc[2] += 1
    return {
        month: MonthlyOverview(month=month, total_deposits=d, negative_days=n, statement_count=int(c))
        for month, (d, n, c) in sorted(totals.items())
    }


def category_months(categories: Any) -> dict[str, dict[str, Any]]:
    """Group a ``categories`` payload into month -> category tree.

    ``categories`` may be a JSON string. An array of objects is grouped by each
    item's ``month`` (else ``date``, else ``"Unknown"``) with same-named
    categories concatenated; an object is read as month -> tree.
    """

    if isinstance(categories, str):
        try:
            categories = json.loads(categories)
        except ValueError:
            _logger.warning("categories payload is not valid JSON; ignoring it")
            return {}

    months: dict[str, dict[str, Any]] = {}
    if isinstance(categories, Sequence) and not isinstance(categories, str):
        for item in categories:
            if not isinstance(item, Mapping):
                continue
            month = str(item.get("month") or item.get("date") or "Unknown")
            tree = months.setdefault(month, {})
            for key, value in item.items():
                if key in ("month", "date"):
                    continue
                bucket = tree.setdefault(key, [])
                if not isinstance(bucket, list):
                    continue
                if isinstance(value, list):
                    bucket.extend(value)
                else:
                    bucket.append(value)
    elif isinstance(categories, Mapping):
        for month, tree in categories.items():
            if isinstance(tree, Mapping):
                months[str(month)] = dict(tree)
    return months
