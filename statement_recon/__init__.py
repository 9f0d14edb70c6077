"""Public interface for the ``statement_recon`` package.

Re-exports the reconciliation API and its models as the stable import
surface. There is no runtime logic here.
"""

from .aggregate import aggregate_categories
from .amounts import parse_amount, resolve_amount
from .categories import (
    BUSINESS_OWNER_CATEGORY,
    FUNDER_LIST_CATEGORY,
    is_business_name_and_owner,
    is_funder_list,
    merge_pseudo_categories,
    subcategory_key,
)
from .documents import monthly_overview
from .funders import compute_holdback, normalize_funder_records, round_half_even
from .models import (
    CategoryAggregation,
    HoldbackResult,
    MCAItem,
    MonthlyOverview,
    Reconciliation,
    SavePayload,
    SubcategorySummary,
    TransactionRow,
)
from .normalizers import normalize_transactions
from .persistence import JsonFileStore, SaveStore
from .reconcile import RevenueReconciler
from .selection import SelectionState
from .session import ReviewSession

__all__ = [
    # API
    "aggregate_categories",
    "compute_holdback",
    "is_business_name_and_owner",
    "is_funder_list",
    "merge_pseudo_categories",
    "monthly_overview",
    "normalize_funder_records",
    "normalize_transactions",
    "parse_amount",
    "resolve_amount",
    "round_half_even",
    "subcategory_key",
    "RevenueReconciler",
    "ReviewSession",
    "SelectionState",
    "JsonFileStore",
    "SaveStore",
    "BUSINESS_OWNER_CATEGORY",
    "FUNDER_LIST_CATEGORY",
    # Models / types
    "CategoryAggregation",
    "HoldbackResult",
    "MCAItem",
    "MonthlyOverview",
    "Reconciliation",
    "SavePayload",
    "SubcategorySummary",
    "TransactionRow",
]
