import pytest

from statement_recon.aggregate import aggregate_categories
from statement_recon.models import SavePayload
from statement_recon.reconcile import RevenueReconciler
from statement_recon.selection import SelectionState


class _MemoryStore:
    def __init__(self) -> None:
        self.saved: list[SavePayload] = []

    def save(self, payload: SavePayload) -> None:
        self.saved.append(payload)


class _FailingStore:
    def save(self, payload: SavePayload) -> None:
        raise OSError("disk full")


def _mk_payload(difference: float = 11500.0) -> SavePayload:
    return SavePayload(
        document_id="doc-1",
        selection={},
        selected_total_from_categories=10000.0 - difference,
        effective_main_totals={},
        difference=difference,
    )


def test_difference_from_reported_and_category_total():
    result = RevenueReconciler().reconcile(10000, -1500)
    assert result.difference == 11500.0
    assert result.displayed_difference == 11500.0
    assert result.selected_total_from_categories == -1500.0


def test_string_inputs_are_parsed():
    result = RevenueReconciler().reconcile("$10,000.00", "2,500")
    assert result.difference == 7500.0


def test_saved_revenue_takes_precedence_over_difference():
    result = RevenueReconciler().reconcile(10000, 2000, "7,000")
    assert result.difference == 8000.0
    assert result.displayed_difference == 7000.0


def test_zero_saved_revenue_is_ignored():
    assert RevenueReconciler().reconcile(10000, 2000, 0).displayed_difference == 8000.0
    assert RevenueReconciler().reconcile(10000, 2000, "").displayed_difference == 8000.0


def test_optimistic_override_wins_until_persisted_value_arrives():
    rec = RevenueReconciler()
    store = _MemoryStore()
    rec.reconcile(10000, 2000, None)
    rec.save(_mk_payload(7777.0), store)
    assert store.saved and rec.optimistic_override == 7777.0

    # Persisted value not yet round-tripped
    assert rec.reconcile(10000, 2000, None).displayed_difference == 7777.0

    # Persisted value arrives: override cleared and the stored figure shown
    result = rec.reconcile(10000, 2000, 7777.0)
    assert rec.optimistic_override is None
    assert result.displayed_difference == 7777.0


def test_override_not_cleared_by_stale_persisted_value():
    rec = RevenueReconciler()
    rec.reconcile(10000, 2000, 5000)
    rec.save(_mk_payload(8000.0), _MemoryStore())
    # The pre-save persisted value comes back unchanged
    assert rec.reconcile(10000, 2000, 5000).displayed_difference == 8000.0
    assert rec.observe_persisted(8000.0) is True
    assert rec.optimistic_override is None


def test_save_without_prior_observation_keeps_override_over_stale_value():
    rec = RevenueReconciler()
    rec.save(_mk_payload(8000.0), _MemoryStore())
    # Unknown baseline: an older persisted figure must not clear the override
    result = rec.reconcile(10000, 2000, 5000)
    assert result.displayed_difference == 8000.0
    assert rec.optimistic_override == 8000.0
    assert rec.observe_persisted("8,000.00") is True
    assert rec.optimistic_override is None


def test_save_uses_supplied_persisted_revenue_as_baseline():
    rec = RevenueReconciler()
    rec.save(_mk_payload(8000.0), _MemoryStore(), persisted_revenue=5000)
    assert rec.reconcile(10000, 2000, 5000).displayed_difference == 8000.0
    # A different figure arriving counts as the store catching up
    assert rec.reconcile(10000, 2000, 7990).displayed_difference == 7990.0
    assert rec.optimistic_override is None


def test_failed_save_propagates_and_keeps_override_unset():
    rec = RevenueReconciler()
    with pytest.raises(OSError):
        rec.save(_mk_payload(), _FailingStore())
    assert rec.optimistic_override is None


def test_build_save_payload_captures_selection_and_totals():
    agg = aggregate_categories(
        {
            "Deposits": {"Card Sales": [{"amount": 100}, {"amount": 50}], "Business Name and Owner": [{"amount": 5}]},
            "Rent": [{"amount": -1500}],
        }
    )
    state = SelectionState()
    state.toggle_row("Deposits::Card Sales", 1, agg.rows_for("Deposits::Card Sales"))
    payload = RevenueReconciler().build_save_payload("doc-1", state, agg, "10,000")
    assert payload.selection == {"Deposits::Card Sales": [0]}
    assert payload.effective_main_totals == {"Deposits": 100.0, "Rent": -1500.0}
    assert payload.selected_total_from_categories == -1400.0
    assert payload.difference == 11400.0


def test_save_payload_rejects_blank_document_id():
    with pytest.raises(ValueError):
        SavePayload(
            document_id="  ",
            selection={},
            selected_total_from_categories=0,
            effective_main_totals={},
            difference=0,
        )
