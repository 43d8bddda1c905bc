"""
Quote workflow service: create, progressive updates, finalize, retrieve.
"""

from typing import Dict, Any, Optional, Sequence, Callable
from datetime import date, datetime, timedelta
import math
import random
import string
import logging

from sqlalchemy.exc import IntegrityError

from autoquote.cache import config_cache
from autoquote.errors import ConflictError, InternalError
from autoquote.models import Policy
from autoquote.schemas import CreateQuoteRequest, Driver, AdditionalDriver, Vehicle, Coverages, QuoteSnapshot
from autoquote.services.lifecycle import (
    PolicyStatus,
    Transition,
    EDITABLE_STATUSES,
    next_status,
    require_status,
    add_months,
    quote_expiration,
)
from autoquote.services.rating import require_vehicle
from autoquote.services.snapshot import (
    new_snapshot,
    with_primary_driver,
    with_additional_drivers,
    with_vehicles,
    with_coverages,
    dump_snapshot,
    load_snapshot,
    snapshot_to_dict,
)
from autoquote.services.store import PolicyStore

logger = logging.getLogger("autoquote")

POLICY_NUMBER_PREFIX = "DZ"
POLICY_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
MAX_NUMBER_ATTEMPTS = 3


def generate_policy_number() -> str:
    """DZ followed by 8 uppercase alphanumerics, e.g. DZQV87Z4FH."""
    return POLICY_NUMBER_PREFIX + "".join(random.choices(POLICY_NUMBER_ALPHABET, k=8))


def _policy_dates(start: date):
    return start, add_months(start, config_cache.get_policy_term_months())


def create_quote(request: CreateQuoteRequest, db_session, now: Optional[datetime] = None) -> Policy:
    """
    Create a quote record.

    Without coverages the quote starts INCOMPLETE (progressive flow). With
    coverages it must have a vehicle and starts QUOTED.
    """
    now = now or datetime.utcnow()
    vehicles = list(request.vehicles) or ([request.vehicle] if request.vehicle else [])
    finalized = request.coverages is not None

    if finalized:
        require_vehicle(vehicles)

    start = request.coverages.start_date if finalized and request.coverages.start_date else now.date()
    effective_date, expiration_date = _policy_dates(start)
    status = next_status(PolicyStatus.INCOMPLETE, Transition.FINALIZE) if finalized else PolicyStatus.INCOMPLETE

    store = PolicyStore(db_session)
    for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
        policy_number = generate_policy_number()
        snapshot = new_snapshot(
            policy_number,
            request.driver,
            request.address,
            vehicles=vehicles,
            additional_drivers=request.additional_drivers,
            coverages=request.coverages,
            now=now,
        )
        policy = Policy(
            policy_number=policy_number,
            status=status.value,
            premium_amount=snapshot.premium.total,
            effective_date=effective_date,
            expiration_date=expiration_date,
            quote_expires_at=quote_expiration(now, config_cache.get_quote_expiration_days()) if finalized else None,
            quote_snapshot=dump_snapshot(snapshot),
            driver_email=snapshot.driver.email,
            created_at=now,
            updated_at=now,
        )
        try:
            policy = store.insert(policy)
            break
        except IntegrityError:
            db_session.rollback()
            logger.warning(f"Policy number collision, retrying | policy_number={policy_number} | attempt={attempt}")
    else:
        raise InternalError("Could not allocate a unique quote number")

    logger.info(
        f"Quote created | "
        f"quote_number={policy.policy_number} | "
        f"status={policy.status} | "
        f"premium={policy.premium_amount} | "
        f"vehicles={len(snapshot.vehicles)} | "
        f"additional_drivers={len(snapshot.additional_drivers)}"
    )

    return policy


def _apply_update(
    policy_number: str,
    build: Callable[[QuoteSnapshot], QuoteSnapshot],
    db_session,
    finalize: bool = False,
    now: Optional[datetime] = None
) -> Policy:
    now = now or datetime.utcnow()
    store = PolicyStore(db_session)
    policy = store.get_or_raise(policy_number)
    current = require_status(policy.status, EDITABLE_STATUSES, "update quote")

    snapshot = build(load_snapshot(policy.quote_snapshot))
    # A priced quote keeps at least one vehicle
    if finalize or current == PolicyStatus.QUOTED:
        require_vehicle(snapshot.vehicles)

    fields = {
        "quote_snapshot": dump_snapshot(snapshot),
        "premium_amount": snapshot.premium.total,
        "driver_email": snapshot.driver.email,
    }

    if finalize:
        fields["status"] = next_status(current, Transition.FINALIZE).value
        fields["quote_expires_at"] = quote_expiration(now, config_cache.get_quote_expiration_days())
        if snapshot.coverages.start_date:
            fields["effective_date"], fields["expiration_date"] = _policy_dates(snapshot.coverages.start_date)

    if not store.update(policy.policy_number, fields, expected_status=current):
        latest = store.get_or_raise(policy_number)
        raise ConflictError(latest.status, "update quote")

    policy = store.get_or_raise(policy_number)
    logger.info(
        f"Quote updated | "
        f"quote_number={policy.policy_number} | "
        f"status={policy.status} | "
        f"version={snapshot.meta.version} | "
        f"premium={policy.premium_amount}"
    )
    return policy


def update_primary_driver(policy_number: str, driver: Driver, db_session) -> Policy:
    return _apply_update(policy_number, lambda s: with_primary_driver(s, driver), db_session)


def update_additional_drivers(policy_number: str, drivers: Sequence[AdditionalDriver], db_session) -> Policy:
    return _apply_update(policy_number, lambda s: with_additional_drivers(s, drivers), db_session)


def update_vehicles(policy_number: str, vehicles: Sequence[Vehicle], db_session) -> Policy:
    return _apply_update(policy_number, lambda s: with_vehicles(s, vehicles), db_session)


def finalize_coverage(policy_number: str, coverages: Coverages, db_session) -> Policy:
    """Record coverage selections and move the quote to QUOTED."""
    return _apply_update(policy_number, lambda s: with_coverages(s, coverages), db_session, finalize=True)


def check_quote_expiration(expires_at: datetime, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Advisory expiration info for a quote. Nothing enforces it.

    Returns:
        is_expired, days_old, days_until_expiration, expires_at and a
        human-readable message
    """
    now = now or datetime.utcnow()
    days = config_cache.get_quote_expiration_days()
    quoted_at = expires_at - timedelta(days=days)
    days_old = math.floor((now - quoted_at).total_seconds() / 86400)
    days_until = days - days_old
    is_expired = days_old >= days

    if is_expired:
        days_ago = abs(days_until)
        if days_ago == 0:
            message = "This quote expired today"
        elif days_ago == 1:
            message = "This quote expired yesterday"
        else:
            message = f"This quote expired {days_ago} days ago"
    elif days_until == 0:
        message = "This quote expires today"
    elif days_until == 1:
        message = "This quote expires tomorrow"
    else:
        message = f"This quote expires in {days_until} days"

    return {
        "is_expired": is_expired,
        "days_old": days_old,
        "days_until_expiration": days_until,
        "expires_at": expires_at,
        "message": message,
    }


def quote_to_dict(policy: Policy, now: Optional[datetime] = None) -> Dict[str, Any]:
    snapshot = load_snapshot(policy.quote_snapshot)
    return {
        "quote_number": policy.policy_number,
        "policy_id": policy.id,
        "status": policy.status,
        "premium": snapshot.premium.model_dump(by_alias=True),
        "effective_date": policy.effective_date,
        "expiration_date": policy.expiration_date,
        "quote_expires_at": policy.quote_expires_at,
        "created_at": policy.created_at,
        "updated_at": policy.updated_at,
        "snapshot": snapshot_to_dict(snapshot),
        "expiration": check_quote_expiration(policy.quote_expires_at, now) if policy.quote_expires_at else None,
    }


def get_quote(policy_number: str, db_session) -> Dict[str, Any]:
    policy = PolicyStore(db_session).get_or_raise(policy_number)
    return quote_to_dict(policy)
