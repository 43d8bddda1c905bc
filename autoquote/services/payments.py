"""
Payment simulator for binding.

Deterministic test rules stand in for a gateway: Luhn validation, two
hard-wired decline cards, and ACH format checks. Only tokenized details
(last four digits, brand or account type) ever leave this module.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel
import re
import uuid
import logging

logger = logging.getLogger("autoquote")

CREDIT_CARD = "credit_card"
ACH = "ach"

# bank_transfer is accepted as an alias for ach
PAYMENT_METHOD_ALIASES = {
    "credit_card": CREDIT_CARD,
    "ach": ACH,
    "bank_transfer": ACH,
}

DECLINED_CARDS = {
    "4000000000000002": "insufficient funds",
    "4000000000009995": "do not honor",
}

CARD_BRANDS = {
    "4": "Visa",
    "5": "Mastercard",
    "3": "American Express",
    "6": "Discover",
}

INVALID_CARD_REASON = "Invalid card number (failed Luhn check)"
INVALID_ROUTING_REASON = "Invalid routing number"
INVALID_ACCOUNT_REASON = "Invalid account number"
UNSUPPORTED_METHOD_REASON = "Unsupported payment method"


class PaymentResult(BaseModel):
    """Outcome of one payment attempt."""
    success: bool
    payment_method: str
    amount: int
    reason: Optional[str] = None
    last_four_digits: Optional[str] = None
    card_brand: Optional[str] = None
    account_type: Optional[str] = None
    transaction_id: Optional[str] = None


def normalize_payment_method(method: Optional[str]) -> Optional[str]:
    return PAYMENT_METHOD_ALIASES.get((method or "").strip().lower())


def _strip(value: Optional[str]) -> str:
    return re.sub(r"\s+", "", value or "")


def luhn_check(card_number: str) -> bool:
    """
    Luhn checksum: double every second digit from the right, subtract 9 when
    the double exceeds 9, and require the total to be a multiple of 10.
    """
    digits = _strip(card_number)
    if not digits.isdigit():
        return False

    total = 0
    for position, char in enumerate(reversed(digits)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit

    return total % 10 == 0


def detect_card_brand(card_number: str) -> str:
    digits = _strip(card_number)
    return CARD_BRANDS.get(digits[:1], "Unknown")


def _transaction_id() -> str:
    return f"txn_{uuid.uuid4().hex[:16]}"


def _declined(method: str, amount: int, reason: str) -> PaymentResult:
    return PaymentResult(success=False, payment_method=method, amount=amount, reason=reason)


def _charge_card(details: Dict[str, Any], amount: int) -> PaymentResult:
    card_number = _strip(details.get("card_number"))

    if not luhn_check(card_number):
        return _declined(CREDIT_CARD, amount, INVALID_CARD_REASON)

    if card_number in DECLINED_CARDS:
        return _declined(CREDIT_CARD, amount, DECLINED_CARDS[card_number])

    return PaymentResult(
        success=True,
        payment_method=CREDIT_CARD,
        amount=amount,
        last_four_digits=card_number[-4:],
        card_brand=detect_card_brand(card_number),
        transaction_id=_transaction_id(),
    )


def _debit_account(details: Dict[str, Any], amount: int) -> PaymentResult:
    routing_number = _strip(details.get("routing_number"))
    account_number = _strip(details.get("account_number"))

    if not re.fullmatch(r"\d{9}", routing_number):
        return _declined(ACH, amount, INVALID_ROUTING_REASON)

    if not re.fullmatch(r"\d{4,}", account_number):
        return _declined(ACH, amount, INVALID_ACCOUNT_REASON)

    return PaymentResult(
        success=True,
        payment_method=ACH,
        amount=amount,
        last_four_digits=account_number[-4:],
        account_type=details.get("account_type") or "checking",
        transaction_id=_transaction_id(),
    )


def simulate_payment(method: Optional[str], details: Dict[str, Any], amount: int) -> PaymentResult:
    """
    Make a single payment attempt.

    Args:
        method: credit_card, ach or bank_transfer
        details: card_number / card_cvv / card_expiry, or routing_number /
            account_number / account_type
        amount: Amount to charge in whole currency units

    Returns:
        PaymentResult; declines carry a human-readable ``reason``
    """
    normalized = normalize_payment_method(method)

    if normalized == CREDIT_CARD:
        result = _charge_card(details, amount)
    elif normalized == ACH:
        result = _debit_account(details, amount)
    else:
        result = _declined(method or "", amount, UNSUPPORTED_METHOD_REASON)

    if result.success:
        logger.info(
            f"Payment approved | "
            f"method={result.payment_method} | "
            f"amount={amount} | "
            f"last4={result.last_four_digits} | "
            f"transaction_id={result.transaction_id}"
        )
    else:
        logger.info(
            f"Payment declined | "
            f"method={result.payment_method} | "
            f"amount={amount} | "
            f"reason={result.reason}"
        )

    return result
