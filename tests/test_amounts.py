import math

import pytest

from statement_recon.amounts import amount_from_text, parse_amount, resolve_amount


def test_currency_string_field_resolves():
    assert resolve_amount({"Amount": "$1,234.56"}) == pytest.approx(1234.56)


def test_empty_record_falls_back_to_last_match_in_description():
    assert resolve_amount({}, "Payment of -$45.00 received") == pytest.approx(-45.00)


def test_last_match_wins_over_running_balance():
    # Running balance appears before the transaction amount.
    text = "Balance $2,500.00 ACH DEBIT 120.50"
    assert resolve_amount({}, text) == pytest.approx(120.50)


def test_field_priority_order():
    record = {"value": "10", "amount": "25", "original_amount": "99"}
    assert resolve_amount(record) == 25.0


def test_zero_and_unparseable_fields_are_skipped():
    record = {"amount": "0", "Amount": "n/a", "debit_amount": "-300.10"}
    assert resolve_amount(record) == pytest.approx(-300.10)


def test_daily_amount_spelling_variants():
    assert resolve_amount({"Daily Amount": "$150"}) == 150.0
    assert resolve_amount({"daily Amount": "75.25"}) == pytest.approx(75.25)


def test_numeric_fields_pass_through():
    assert resolve_amount({"amt": -12.5}) == -12.5
    assert resolve_amount({"amount": 1e-7}) == pytest.approx(1e-7)


def test_booleans_are_not_amounts():
    assert resolve_amount({"amount": True}, "") == 0.0


def test_leading_prefix_is_parsed_like_parsefloat():
    # "12.3.4" keeps the leading "12.3"
    assert resolve_amount({"amount": "12.3.4"}) == pytest.approx(12.3)


def test_unresolved_amount_is_zero():
    assert resolve_amount({"memo": "no numbers"}, "no numbers here") == 0.0
    assert resolve_amount(None, "") == 0.0
    assert resolve_amount("not a record", "") == 0.0


def test_non_finite_field_values_are_ignored():
    assert resolve_amount({"amount": math.inf, "value": "5"}) == 5.0
    assert resolve_amount({"amount": math.nan}, "") == 0.0


def test_amount_from_text_without_tokens():
    assert amount_from_text("") == 0.0


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("$10,000.00", 10000.0),
        (" 1 234.5 ", 1234.5),
        (2500, 2500.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        (math.nan, 0.0),
    ],
)
def test_parse_amount_best_effort(raw, expected):
    assert parse_amount(raw) == pytest.approx(expected)
