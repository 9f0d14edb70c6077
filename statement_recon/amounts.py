"""Amount recovery for loosely structured extracted records.

Statement extraction is noisy: the same value shows up as ``amount``,
``Amount``, ``debit_amount`` or ``"Daily Amount"``, sometimes as a number and
sometimes as ``"$1,234.56"``. When no field carries a usable value, the amount
is recovered from the description text instead.

Resolution never raises. A record whose amount cannot be recovered resolves
to ``0.0``, which is indistinguishable from a genuine zero-dollar row.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from .logging_setup import get_logger

_logger = get_logger("statement_recon.amounts")

# Probed in order; the first finite, non-zero value wins.
AMOUNT_FIELDS: tuple[str | tuple[str, ...], ...] = (
    "amount",
    "Amount",
    "value",
    "amt",
    "debit_amount",
    "debitAmount",
    "daily_amount",
    ("Daily Amount", "daily Amount"),
    "original_amount",
    "OriginalAmount",
)

_NON_NUMERIC_RE = re.compile(r"[^0-9.+\-]")
_LEADING_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
# Currency-like tokens: "-$1,234.56", "$ 45.00", "123", "45.67"
_CURRENCY_TOKEN_RE = re.compile(
    r"-?\$?\s*(?:[0-9]{1,3}(?:,[0-9]{3})*(?:\.[0-9]{2})|[0-9]+(?:\.[0-9]{2})?)"
)


def _parse_leading_float(text: str) -> float:
    """Parse the longest numeric prefix of ``text``; ``nan`` when there is none."""

    m = _LEADING_NUMBER_RE.match(text)
    if m is None:
        return math.nan
    return float(m.group(0))


def _candidate_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, int | float):
        return float(value)
    return _parse_leading_float(_NON_NUMERIC_RE.sub("", str(value)))


def _field_value(record: Mapping[str, Any], name: str | tuple[str, ...]) -> Any:
    if isinstance(name, str):
        return record.get(name)
    # Spelling variants of one field: first truthy one
    for alias in name:
        v = record.get(alias)
        if v:
            return v
    return None


def amount_from_text(text: str) -> float:
    """Return the last currency-like token in ``text`` (``0.0`` when none).

    Statement lines often carry a running balance ahead of the transaction
    amount, so the last match is taken.
    """

    matches = _CURRENCY_TOKEN_RE.findall(text or "")
    if not matches:
        return 0.0
    n = _candidate_number(matches[-1])
    return n if math.isfinite(n) else 0.0


def resolve_amount(record: Any, fallback_text: str = "") -> float:
    """Resolve a signed amount from ``record``, falling back to ``fallback_text``."""

    if isinstance(record, Mapping):
        for name in AMOUNT_FIELDS:
            n = _candidate_number(_field_value(record, name))
            if math.isfinite(n) and n != 0:
                return n

    amount = amount_from_text(fallback_text)
    if amount == 0:
        _logger.debug("unresolved amount for %r", fallback_text)
    return amount


def parse_amount(value: Any) -> float:
    """Best-effort numeric parse for externally supplied totals.

    Finite numbers pass through. Anything else has thousands separators,
    whitespace and currency symbols stripped before the leading number is
    read. Returns ``0.0`` when nothing numeric remains.
    """

    n = _candidate_number(value)
    return n if math.isfinite(n) else 0.0
