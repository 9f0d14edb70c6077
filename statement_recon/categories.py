"""Category naming helpers and pseudo-category detection.

Two category buckets hold informational rows rather than revenue: the
business identity bucket ("Business Name and Owner") and the funder list.
Their rows stay visible but never count toward main or grand totals.

Category names are otherwise compared verbatim; only the two detectors below
normalize case and whitespace.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .normalizers import flatten_records

BUSINESS_OWNER_CATEGORY = "Business Name and Owner"
FUNDER_LIST_CATEGORY = "Funder List"

KEY_SEPARATOR = "::"


def normalize_name(name: str) -> str:
    """Return a trimmed, lowercased, single-spaced form of ``name``."""

    return " ".join(str(name or "").split()).lower()


def is_business_name_and_owner(name: str) -> bool:
    norm = normalize_name(name)
    return (
        norm == "business name and owner"
        # Misspelling seen in extracted data
        or norm == "business name and owder"
        or ("business name" in norm and "owner" in norm)
    )


def is_funder_list(name: str) -> bool:
    return normalize_name(name) == "funder list"


def is_pseudo_category(name: str) -> bool:
    return is_business_name_and_owner(name) or is_funder_list(name)


def subcategory_key(main: str, sub: str | None = None) -> str:
    """Build the ``"main::sub"`` selection key (flat categories use ``main::main``)."""

    return f"{main}{KEY_SEPARATOR}{main if sub is None else sub}"


def merge_pseudo_categories(
    tree: Mapping[str, Any] | None,
    *,
    business_owner: Any = None,
    funder_list: Any = None,
) -> dict[str, Any]:
    """Return a copy of ``tree`` with the sibling blobs merged in as flat categories.

    Records from ``business_owner`` and ``funder_list`` are appended under
    :data:`BUSINESS_OWNER_CATEGORY` and :data:`FUNDER_LIST_CATEGORY`. An
    existing flat category of the same name keeps its rows ahead of the
    merged ones; an existing nested one is left untouched.
    """

    merged: dict[str, Any] = dict(tree) if isinstance(tree, Mapping) else {}
    for name, blob in ((BUSINESS_OWNER_CATEGORY, business_owner), (FUNDER_LIST_CATEGORY, funder_list)):
        records = flatten_records(blob)
        if not records:
            continue
        existing = merged.get(name)
        if existing is None:
            merged[name] = records
        elif isinstance(existing, list):
            merged[name] = [*existing, *records]
    return merged
