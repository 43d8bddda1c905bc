"""
Quote snapshot builder.

Every update replaces one whole section of the snapshot and returns a new
snapshot whose premium has been recomputed by the rating engine. Nothing
outside this module sets ``premium`` on a snapshot.
"""

from typing import Dict, Any, List, Optional, Sequence
from datetime import datetime
import logging

from autoquote.schemas import (
    QuoteSnapshot,
    Driver,
    AdditionalDriver,
    Vehicle,
    Address,
    Coverages,
    Premium,
    SnapshotMeta,
)
from autoquote.services.rating import calculate_premium_breakdown, build_premium

logger = logging.getLogger("autoquote")


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def dedupe_additional_drivers(
    primary: Driver,
    drivers: Sequence[AdditionalDriver],
    quote_number: str = ""
) -> List[AdditionalDriver]:
    """
    Drop additional drivers that repeat the primary driver's email (or an
    earlier additional driver's email). Comparison is case-insensitive.
    """
    seen = {_normalize_email(primary.email)}
    kept = []

    for driver in drivers:
        email = _normalize_email(driver.email)
        if email in seen:
            logger.warning(
                f"Dropped duplicate additional driver | "
                f"quote_number={quote_number} | "
                f"email={email}"
            )
            continue
        seen.add(email)
        kept.append(driver if not driver.is_primary else driver.model_copy(update={"is_primary": False}))

    return kept


def rate_snapshot(snapshot: QuoteSnapshot) -> Premium:
    """Price the snapshot's current contents with the progressive variant."""
    breakdown = calculate_premium_breakdown(
        snapshot.driver.birth_date,
        snapshot.additional_drivers,
        snapshot.vehicles,
        snapshot.coverages,
    )
    return Premium(**build_premium(breakdown["total"]))


def _restamp(draft: QuoteSnapshot, now: datetime, finalize: bool = False) -> QuoteSnapshot:
    meta_update = {"updated_at": now, "version": draft.meta.version + 1}
    if finalize:
        meta_update["finalized_at"] = now

    return draft.model_copy(update={
        "premium": rate_snapshot(draft),
        "meta": draft.meta.model_copy(update=meta_update),
    })


def new_snapshot(
    quote_number: str,
    driver: Driver,
    address: Address,
    vehicles: Sequence[Vehicle] = (),
    additional_drivers: Sequence[AdditionalDriver] = (),
    coverages: Optional[Coverages] = None,
    now: Optional[datetime] = None
) -> QuoteSnapshot:
    """
    Assemble version 1 of a quote snapshot.

    A snapshot created with coverages is already final (``finalized_at`` is
    stamped). It is priced the same way as every later update, so the
    premium depends only on the snapshot contents.
    """
    now = now or datetime.utcnow()
    primary = driver.model_copy(update={"is_primary": True})
    drivers = dedupe_additional_drivers(primary, additional_drivers, quote_number)
    vehicles = list(vehicles)

    breakdown = calculate_premium_breakdown(primary.birth_date, drivers, vehicles, coverages)

    return QuoteSnapshot(
        driver=primary,
        additional_drivers=drivers,
        vehicle=vehicles[0] if vehicles else None,
        vehicles=vehicles,
        address=address,
        coverages=coverages,
        premium=Premium(**build_premium(breakdown["total"])),
        meta=SnapshotMeta(
            created_at=now,
            updated_at=now,
            finalized_at=now if coverages is not None else None,
            version=1,
            quote_number=quote_number,
        ),
    )


def with_primary_driver(snapshot: QuoteSnapshot, driver: Driver, now: Optional[datetime] = None) -> QuoteSnapshot:
    """Replace the primary driver; re-applies the additional driver dedupe."""
    primary = driver.model_copy(update={"is_primary": True})
    draft = snapshot.model_copy(update={
        "driver": primary,
        "additional_drivers": dedupe_additional_drivers(
            primary, snapshot.additional_drivers, snapshot.meta.quote_number
        ),
    })
    return _restamp(draft, now or datetime.utcnow())


def with_additional_drivers(
    snapshot: QuoteSnapshot,
    drivers: Sequence[AdditionalDriver],
    now: Optional[datetime] = None
) -> QuoteSnapshot:
    draft = snapshot.model_copy(update={
        "additional_drivers": dedupe_additional_drivers(
            snapshot.driver, drivers, snapshot.meta.quote_number
        ),
    })
    return _restamp(draft, now or datetime.utcnow())


def with_vehicles(snapshot: QuoteSnapshot, vehicles: Sequence[Vehicle], now: Optional[datetime] = None) -> QuoteSnapshot:
    vehicles = list(vehicles)
    draft = snapshot.model_copy(update={
        "vehicles": vehicles,
        "vehicle": vehicles[0] if vehicles else None,
    })
    return _restamp(draft, now or datetime.utcnow())


def with_coverages(snapshot: QuoteSnapshot, coverages: Coverages, now: Optional[datetime] = None) -> QuoteSnapshot:
    """Replace coverage selections and stamp the snapshot as finalized."""
    draft = snapshot.model_copy(update={"coverages": coverages})
    return _restamp(draft, now or datetime.utcnow(), finalize=True)


def dump_snapshot(snapshot: QuoteSnapshot) -> str:
    return snapshot.model_dump_json(by_alias=True)


def load_snapshot(snapshot_json: str) -> QuoteSnapshot:
    return QuoteSnapshot.model_validate_json(snapshot_json)


def snapshot_to_dict(snapshot: QuoteSnapshot) -> Dict[str, Any]:
    """JSON-ready camelCase document, as stored."""
    return snapshot.model_dump(mode="json", by_alias=True)
