"""Funder debit normalization and holdback percentage.

Funder records (merchant cash advance positions) arrive as an array of
records or as an object mapping a period to an array of records. Each record
becomes an :class:`~statement_recon.models.MCAItem` whose daily-equivalent
amount divides weekly debits by five business days.

The holdback percentage is::

    total_funders = sum(daily_equivalent_amount for selected items)
    subtotal      = total_funders * 20
    ratio         = subtotal / revenue            (0 when revenue <= 0)
    holdback      = round_half_even(ratio * 100, 1)
"""

from __future__ import annotations

import math
from collections.abc import Collection, Mapping, Sequence
from typing import Any

from .amounts import parse_amount, resolve_amount
from .logging_setup import get_logger
from .models import HoldbackResult, MCAItem
from .normalizers import first_present, flatten_records

_logger = get_logger("statement_recon.funders")

HOLDBACK_MULTIPLIER = 20
WEEKLY_BUSINESS_DAYS = 5
TIE_TOLERANCE = 1e-10

_PERIOD_FIELDS = ("period", "month", "date")
_FUNDER_FIELDS = ("funder", "Funder", "funder_name", "name")
_FREQUENCY_FIELDS = ("frequency", "debit_frequency", "Frequency", "Debit Frequency")
_NOTES_FIELDS = ("notes", "Notes", "note")
_WEEKLY = {"weekly", "week"}


def is_weekly(frequency: str) -> bool:
    return " ".join(str(frequency or "").split()).lower() in _WEEKLY


def to_mca_item(record: Any, period: str = "") -> MCAItem:
    frequency = first_present(record, _FREQUENCY_FIELDS)
    notes = first_present(record, _NOTES_FIELDS)
    raw = resolve_amount(record, notes)
    weekly = is_weekly(frequency)
    return MCAItem(
        period=first_present(record, _PERIOD_FIELDS) or period,
        funder=first_present(record, _FUNDER_FIELDS),
        frequency=frequency,
        raw_amount=raw,
        is_weekly=weekly,
        daily_equivalent_amount=raw / WEEKLY_BUSINESS_DAYS if weekly else raw,
        notes=notes,
    )


def normalize_funder_records(blob: Any) -> list[MCAItem]:
    """Derive MCA items from an array or an object of period -> records."""

    if isinstance(blob, Mapping):
        items: list[MCAItem] = []
        for period, records in blob.items():
            items.extend(to_mca_item(r, str(period)) for r in flatten_records(records))
        return items
    return [to_mca_item(r) for r in flatten_records(blob)]


def round_half_even(value: float, ndigits: int = 1) -> float:
    """Round ``value`` to ``ndigits`` decimals, sending exact ties to the even neighbour.

    A tie is a fractional remainder within :data:`TIE_TOLERANCE` of one half
    after scaling, which absorbs binary representation error such as
    ``12.25`` arriving as ``12.249999999999998``. Rounding is to one decimal
    of a percent, so a ratio of ``0.125`` stays ``12.5``; it is not a tie.
    """

    if not math.isfinite(value):
        return 0.0
    scale = 10**ndigits
    scaled = value * scale
    floor = math.floor(scaled)
    remainder = scaled - floor
    if abs(remainder - 0.5) < TIE_TOLERANCE:
        rounded = floor if floor % 2 == 0 else floor + 1
    else:
        rounded = math.floor(scaled + 0.5)
    return rounded / scale


def compute_holdback(
    mca_items: Sequence[MCAItem],
    selected_indices: Collection[int] | None = None,
    revenue: Any = 0,
) -> HoldbackResult:
    """Compute the holdback figures over the selected MCA items (default: all)."""

    if selected_indices is None:
        chosen = list(mca_items)
    else:
        chosen = [item for i, item in enumerate(mca_items) if i in selected_indices]

    total_funders = math.fsum(item.daily_equivalent_amount for item in chosen)
    subtotal = total_funders * HOLDBACK_MULTIPLIER
    rev = parse_amount(revenue)
    if rev > 0:
        ratio = subtotal / rev
    else:
        _logger.debug("revenue %r is not positive; holdback is 0", revenue)
        ratio = 0.0

    return HoldbackResult(
        total_funders=total_funders,
        subtotal=subtotal,
        ratio=ratio,
        holdback_percent=round_half_even(ratio * 100, 1) if ratio else 0.0,
    )
