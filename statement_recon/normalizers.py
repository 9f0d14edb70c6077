"""Flatten extracted category blobs into :class:`TransactionRow` lists.

Accepted shapes for a subcategory blob:

- an array of records (nested arrays are flattened one level);
- an object whose values are arrays of records;
- an object whose values are objects carrying a ``transactions`` array.

Anything else yields an empty list. Normalization never raises and never
mutates its input.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .amounts import resolve_amount
from .logging_setup import get_logger
from .models import TransactionRow

_logger = get_logger("statement_recon.normalizers")

_DATE_FIELDS = ("date", "Date", "transaction_date", "posted_at")
_DESCRIPTION_FIELDS = ("description", "Description", "memo", "details")


def _is_array(v: Any) -> bool:
    return isinstance(v, Sequence) and not isinstance(v, str | bytes | bytearray)


def _is_present(v: Any) -> bool:
    # Empty records still count as rows; only null-ish scalars are dropped.
    if isinstance(v, Mapping) or _is_array(v):
        return True
    return bool(v)


def first_present(record: Any, fields: Sequence[str]) -> str:
    """Return the first truthy value among ``fields`` as a string (``""`` if none)."""

    if not isinstance(record, Mapping):
        return ""
    for name in fields:
        v = record.get(name)
        if v:
            return str(v)
    return ""


def flatten_records(blob: Any) -> list[Any]:
    """Return the raw records held by ``blob`` without resolving them."""

    if not blob:
        return []
    if _is_array(blob):
        out: list[Any] = []
        for item in blob:
            if _is_array(item):
                out.extend(item)
            else:
                out.append(item)
        return [r for r in out if _is_present(r)]
    if isinstance(blob, Mapping):
        merged: list[Any] = []
        for v in blob.values():
            if _is_array(v):
                merged.extend(v)
            elif isinstance(v, Mapping):
                maybe = v.get("transactions")
                if _is_array(maybe):
                    merged.extend(maybe)
        return [r for r in merged if _is_present(r)]
    _logger.debug("unrecognized transaction blob of type %s", type(blob).__name__)
    return []


def to_transaction_row(record: Any) -> TransactionRow:
    description = first_present(record, _DESCRIPTION_FIELDS)
    return TransactionRow(
        date=first_present(record, _DATE_FIELDS),
        description=description,
        amount=resolve_amount(record, description),
    )


def normalize_transactions(blob: Any) -> list[TransactionRow]:
    """Normalize any supported blob shape into transaction rows."""

    return [to_transaction_row(r) for r in flatten_records(blob)]


__all__ = [
    "first_present",
    "flatten_records",
    "normalize_transactions",
    "to_transaction_row",
]
