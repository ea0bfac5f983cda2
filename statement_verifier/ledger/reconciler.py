"""Balance reconciliation for statement ledgers."""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional, Union

from statement_verifier.ledger.models import (
    BalanceCheck,
    Direction,
    Ledger,
    MonetaryAmount,
)
from statement_verifier.utils.exceptions import CurrencyMismatchError
from statement_verifier.utils.logger import get_logger

CENT = Decimal("0.01")
DEBIT_SUFFIX = re.compile(r"\s*\bDR\.?\s*$", re.IGNORECASE)
CREDIT_SUFFIX = re.compile(r"\s*\bCR\.?\s*$", re.IGNORECASE)

Number = Union[Decimal, int, float, str]


def to_decimal(value: Union[Number, MonetaryAmount]) -> Decimal:
    """Convert a number or MonetaryAmount to Decimal without float noise."""
    if isinstance(value, MonetaryAmount):
        return value.value
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _field(entry: Any, name: str, alias: Optional[str] = None) -> Any:
    if isinstance(entry, Mapping):
        if name in entry:
            return entry[name]
        return entry[alias] if alias else entry[name]
    return getattr(entry, name)


def calculate_balance(opening: Union[Number, MonetaryAmount], transactions: Iterable[Any]) -> Decimal:
    """Fold signed transaction amounts onto an opening balance.

    Incoming amounts are added and outgoing amounts subtracted. Each entry
    may be an object or mapping with ``amount`` and ``direction`` (mappings
    may use ``type`` instead of ``direction``).

    Args:
        opening: Opening balance.
        transactions: Transactions in any order.

    Returns:
        The calculated closing balance.
    """
    balance = to_decimal(opening)
    for transaction in transactions:
        amount = to_decimal(_field(transaction, "amount"))
        direction = Direction(_field(transaction, "direction", alias="type"))
        balance += amount if direction is Direction.INCOMING else -amount
    return balance


def _strip_grouping(digits: str, separator: str) -> Optional[str]:
    """Remove thousands separators, or return None if the groups are malformed."""
    groups = digits.split(separator)
    if not 1 <= len(groups[0]) <= 3 or any(len(group) != 3 for group in groups[1:]):
        return None
    return "".join(groups)


def parse_amount(amount_str: Optional[str]) -> Optional[Decimal]:
    """Parse an amount string such as ``"£1,234.56"``, ``"(50.00)"`` or ``"50.00 DR"``.

    A lone separator followed by exactly three digits (``"1,234"``,
    ``"€1.000"``) is read as a thousands separator. Repeated separators of
    one kind must form groups of three digits. A trailing ``DR`` marks a
    debit balance and makes the amount negative.

    Args:
        amount_str: String containing amount.

    Returns:
        Parsed Decimal amount or None if parsing fails.
    """
    if amount_str is None:
        return None

    text = amount_str.strip()
    if not text:
        return None

    negative = text.startswith("(") and text.endswith(")")
    if DEBIT_SUFFIX.search(text):
        negative = True
        text = DEBIT_SUFFIX.sub("", text)
    text = CREDIT_SUFFIX.sub("", text)

    # Remove currency symbols and whitespace, but keep negative sign
    clean_amount = re.sub(r"[^\d.,-]", "", text)
    if clean_amount.startswith("-"):
        negative = True
    clean_amount = clean_amount.replace("-", "")

    if not clean_amount or not any(ch.isdigit() for ch in clean_amount):
        return None

    if "," in clean_amount and "." in clean_amount:
        # Whichever separator comes last is the decimal separator
        if clean_amount.rfind(",") > clean_amount.rfind("."):
            clean_amount = clean_amount.replace(".", "").replace(",", ".")
        else:
            clean_amount = clean_amount.replace(",", "")
    else:
        separator = "," if "," in clean_amount else "."
        count = clean_amount.count(separator)
        fraction = clean_amount.rsplit(separator, 1)[-1]
        grouped = count == 1 and len(fraction) == 3 and not clean_amount.startswith(("0", separator))
        if count > 1 or grouped:
            clean_amount = _strip_grouping(clean_amount, separator)
            if clean_amount is None:
                return None
        elif count == 1:
            clean_amount = clean_amount.replace(separator, ".")

    try:
        value = Decimal(clean_amount)
    except InvalidOperation:
        return None

    return -value if negative else value


class BalanceReconciler:
    """Checks that a ledger's transactions explain its closing balance."""

    def __init__(self) -> None:
        """Initialize balance reconciler."""
        self.logger = get_logger(__name__)

    @staticmethod
    def _ledger_currency(ledger: Ledger) -> str:
        amounts = [ledger.opening_balance, ledger.closing_balance]
        amounts.extend(t.amount for t in ledger.transactions)

        currencies = {a.currency.strip().upper() for a in amounts if a.currency and a.currency.strip()}
        if len(currencies) > 1:
            raise CurrencyMismatchError(
                f"Ledger mixes currencies: {', '.join(sorted(currencies))}"
            )
        return currencies.pop() if currencies else ""

    def reconcile(self, ledger: Ledger) -> BalanceCheck:
        """Recalculate the closing balance of a ledger and compare it.

        Raises:
            CurrencyMismatchError: If the ledger uses more than one currency.
        """
        currency = self._ledger_currency(ledger)
        calculated = calculate_balance(ledger.opening_balance, ledger.transactions)

        check = BalanceCheck(
            currency=currency,
            opening=ledger.opening_balance.value.quantize(CENT, rounding=ROUND_HALF_UP),
            claimed_closing=ledger.closing_balance.value.quantize(CENT, rounding=ROUND_HALF_UP),
            calculated_closing=calculated.quantize(CENT, rounding=ROUND_HALF_UP),
        )

        if check.is_balanced:
            self.logger.info(
                f"Ledger reconciles: {len(ledger.transactions)} transactions, "
                f"closing {check.calculated_closing} {currency}".rstrip()
            )
        else:
            self.logger.warning(
                f"Ledger does not reconcile: calculated {check.calculated_closing}, "
                f"statement shows {check.claimed_closing} (difference {check.difference})"
            )
        return check
