"""Tests for the balance reconciler."""

import itertools
from decimal import Decimal

import pytest

from statement_verifier.ledger.models import Direction, Ledger, MonetaryAmount, Transaction
from statement_verifier.ledger.reconciler import BalanceReconciler, calculate_balance, parse_amount
from statement_verifier.utils.exceptions import CurrencyMismatchError


def amount(value, currency="GBP"):
    return MonetaryAmount(currency=currency, symbol="£", value=Decimal(value))


class TestCalculateBalance:
    """Test cases for calculate_balance."""

    def test_incoming_and_outgoing(self):
        transactions = [
            {"amount": 100, "direction": "incoming"},
            {"amount": 50, "direction": "outgoing"},
        ]
        assert calculate_balance(Decimal("1000.00"), transactions) == Decimal("1050.00")

    def test_spend_to_zero(self):
        assert calculate_balance(Decimal("500.00"), [{"amount": 500, "direction": "outgoing"}]) == Decimal("0.00")

    def test_empty_list_returns_opening(self):
        assert calculate_balance(Decimal("123.45"), []) == Decimal("123.45")

    def test_order_independent(self):
        transactions = [
            {"amount": "10.10", "direction": "incoming"},
            {"amount": "3.33", "direction": "outgoing"},
            {"amount": "0.07", "direction": "outgoing"},
            {"amount": "250", "direction": "incoming"},
        ]
        results = {
            calculate_balance(Decimal("1.00"), list(order))
            for order in itertools.permutations(transactions)
        }
        assert results == {Decimal("257.70")}

    def test_type_alias(self):
        transactions = [{"amount": 20, "type": "incoming"}, {"amount": 5, "type": "outgoing"}]
        assert calculate_balance(0, transactions) == Decimal("15")

    def test_transaction_objects(self, sample_ledger):
        assert calculate_balance(sample_ledger.opening_balance, sample_ledger.transactions) == Decimal("1050.00")

    def test_floats_do_not_drift(self):
        transactions = [{"amount": 0.1, "direction": "incoming"}] * 3
        assert calculate_balance(0, transactions) == Decimal("0.3")

    def test_unknown_direction(self):
        with pytest.raises(ValueError):
            calculate_balance(0, [{"amount": 1, "direction": "sideways"}])


class TestParseAmount:
    """Test cases for parse_amount."""

    @pytest.mark.parametrize("text, expected", [
        ("1,234.56", Decimal("1234.56")),
        ("£1,234.56", Decimal("1234.56")),
        ("1.234,56", Decimal("1234.56")),
        ("12,50", Decimal("12.50")),
        ("1,234", Decimal("1234")),
        ("-50.00", Decimal("-50.00")),
        ("(50.00)", Decimal("-50.00")),
        ("USD 2,000,000.00", Decimal("2000000.00")),
        ("0.00", Decimal("0.00")),
        ("0.125", Decimal("0.125")),
    ])
    def test_parses(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text, expected", [
        ("1.234.567", Decimal("1234567")),
        ("1.234.567,89", Decimal("1234567.89")),
        ("€1.000", Decimal("1000")),
        ("2,000,000", Decimal("2000000")),
    ])
    def test_thousands_separators(self, text, expected):
        """Test that repeated or three-digit groups are thousands separators."""
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text, expected", [
        ("50.00 DR", Decimal("-50.00")),
        ("£1,200.00 Dr", Decimal("-1200.00")),
        ("50.00 DR.", Decimal("-50.00")),
        ("50.00 CR", Decimal("50.00")),
    ])
    def test_debit_and_credit_markers(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [None, "", "   ", "-", "n/a", "1.2.3", "12.34.5", "DR"])
    def test_unparsable(self, text):
        assert parse_amount(text) is None


class TestBalanceReconciler:
    """Test cases for BalanceReconciler."""

    def test_balanced_ledger(self, sample_ledger):
        check = BalanceReconciler().reconcile(sample_ledger)

        assert check.is_balanced
        assert check.calculated_closing == Decimal("1050.00")
        assert check.difference == Decimal("0.00")
        assert check.currency == "GBP"

    def test_unbalanced_ledger(self, sample_ledger):
        ledger = Ledger(
            opening_balance=sample_ledger.opening_balance,
            closing_balance=amount("1075.00"),
            transactions=sample_ledger.transactions,
        )

        check = BalanceReconciler().reconcile(ledger)

        assert not check.is_balanced
        assert check.difference == Decimal("-25.00")

    def test_sub_cent_noise_is_rounded(self):
        ledger = Ledger(
            opening_balance=amount("10.004"),
            closing_balance=amount("10.00"),
            transactions=[],
        )
        assert BalanceReconciler().reconcile(ledger).is_balanced

    def test_mixed_currencies_rejected(self):
        ledger = Ledger(
            opening_balance=amount("100"),
            closing_balance=amount("90"),
            transactions=[
                Transaction(date="2024-01-01", amount=amount("10", currency="EUR"),
                            direction=Direction.OUTGOING),
            ],
        )
        with pytest.raises(CurrencyMismatchError, match="EUR, GBP"):
            BalanceReconciler().reconcile(ledger)

    def test_blank_currency_inherits(self):
        ledger = Ledger(
            opening_balance=amount("100"),
            closing_balance=amount("90"),
            transactions=[
                Transaction(date="2024-01-01", amount=amount("10", currency=""),
                            direction=Direction.OUTGOING),
            ],
        )
        check = BalanceReconciler().reconcile(ledger)
        assert check.is_balanced
        assert check.currency == "GBP"

    def test_overdrawn_opening_balance(self):
        ledger = Ledger(
            opening_balance=amount("-20.00"),
            closing_balance=amount("30.00"),
            transactions=[
                Transaction(date="2024-02-01", amount=amount("50.00"), direction=Direction.INCOMING),
            ],
        )
        assert BalanceReconciler().reconcile(ledger).is_balanced

    def test_signed_value(self, sample_ledger):
        assert [t.signed_value for t in sample_ledger.transactions] == [Decimal("100.00"), Decimal("-50.00")]
