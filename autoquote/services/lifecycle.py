"""
Quote/policy status state machine.

TRANSITIONS is the only place that decides whether a status change is
legal. Services ask ``next_status`` and persist the answer.
"""

from enum import Enum
from typing import Dict, Tuple, Union
from datetime import date, datetime, timedelta
import calendar

from autoquote.errors import ConflictError


class PolicyStatus(str, Enum):
    INCOMPLETE = "INCOMPLETE"
    QUOTED = "QUOTED"
    BINDING = "BINDING"
    BOUND = "BOUND"
    IN_FORCE = "IN_FORCE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class Transition(str, Enum):
    FINALIZE = "finalize"
    BEGIN_BIND = "bind"
    PAYMENT_SUCCEEDED = "complete payment"
    PAYMENT_FAILED = "revert payment"
    ACTIVATE = "activate"
    CANCEL = "cancel"
    EXPIRE = "expire"


TRANSITIONS: Dict[Tuple[PolicyStatus, Transition], PolicyStatus] = {
    (PolicyStatus.INCOMPLETE, Transition.FINALIZE): PolicyStatus.QUOTED,
    (PolicyStatus.QUOTED, Transition.FINALIZE): PolicyStatus.QUOTED,
    (PolicyStatus.QUOTED, Transition.BEGIN_BIND): PolicyStatus.BINDING,
    (PolicyStatus.BINDING, Transition.PAYMENT_SUCCEEDED): PolicyStatus.BOUND,
    (PolicyStatus.BINDING, Transition.PAYMENT_FAILED): PolicyStatus.QUOTED,
    (PolicyStatus.BOUND, Transition.ACTIVATE): PolicyStatus.IN_FORCE,
    (PolicyStatus.QUOTED, Transition.EXPIRE): PolicyStatus.EXPIRED,
    (PolicyStatus.QUOTED, Transition.CANCEL): PolicyStatus.CANCELLED,
    (PolicyStatus.IN_FORCE, Transition.CANCEL): PolicyStatus.CANCELLED,
}

# Statuses in which drivers, vehicles and coverages may still change
EDITABLE_STATUSES = frozenset({PolicyStatus.INCOMPLETE, PolicyStatus.QUOTED})

# Statuses visible through the customer portal
PORTAL_STATUSES = frozenset({
    PolicyStatus.BOUND,
    PolicyStatus.IN_FORCE,
    PolicyStatus.CANCELLED,
    PolicyStatus.EXPIRED,
})

CLAIMABLE_STATUSES = frozenset({PolicyStatus.BOUND, PolicyStatus.IN_FORCE})

# The signing ceremony happens between quoting and binding
SIGNABLE_STATUSES = frozenset({PolicyStatus.QUOTED})


def next_status(current: Union[PolicyStatus, str], transition: Transition) -> PolicyStatus:
    """
    Resolve a transition from the current status.

    Raises:
        ConflictError: if the transition is not legal from ``current``
    """
    current = PolicyStatus(current)
    try:
        return TRANSITIONS[(current, transition)]
    except KeyError:
        raise ConflictError(current.value, transition.value) from None


def can_transition(current: Union[PolicyStatus, str], transition: Transition) -> bool:
    return (PolicyStatus(current), transition) in TRANSITIONS


def require_status(current: Union[PolicyStatus, str], allowed: frozenset, attempted: str) -> PolicyStatus:
    """Guard for operations that do not change status."""
    current = PolicyStatus(current)
    if current not in allowed:
        raise ConflictError(current.value, attempted)
    return current


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic, clamping to the last day of the month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def quote_expiration(finalized_at: datetime, days: int = 30) -> datetime:
    return finalized_at + timedelta(days=days)
