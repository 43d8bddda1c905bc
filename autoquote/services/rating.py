"""
Rating engine for personal auto premiums.

Formula: premium = base * vehicle_factor * multi_vehicle_discount * driver_factor
                   * additional_drivers_factor * coverage_factor

The engine is pure: every function takes its inputs (and optionally the
rating tables) explicitly and never touches the database.
"""

from typing import Dict, Any, Optional, Sequence
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
import math
import logging

from autoquote.cache import config_cache
from autoquote.errors import ValidationError

logger = logging.getLogger("autoquote")

DAYS_PER_YEAR = 365.25


def _tables(tables: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return tables if tables is not None else config_cache.get_rating_tables()


def round_currency(amount: float) -> int:
    """Round to the nearest whole currency unit, halves away from zero."""
    # Trim float noise first so 1499.9999999998 rates as 1500
    return int(Decimal(repr(round(amount, 6))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_vehicle_age(model_year: int, today: Optional[date] = None) -> int:
    today = today or date.today()
    return today.year - model_year


def get_vehicle_factor(
    vehicles: Sequence[Any],
    today: Optional[date] = None,
    tables: Optional[Dict[str, Any]] = None
) -> float:
    """
    Vehicle age factor, based on the first vehicle only.

    Args:
        vehicles: Vehicles on the quote (objects with a ``year``)
        today: Rating date (defaults to today)
        tables: Rating tables (defaults to cached config)

    Returns:
        1.3 for vehicles up to 3 years old, 1.0 for 4-7, 0.9 for 8+,
        1.0 when no vehicle is present
    """
    if not vehicles:
        return 1.0

    factors = _tables(tables)["vehicle_age_factors"]
    age = calculate_vehicle_age(vehicles[0].year, today)

    if age <= factors["new_max_age"]:
        return factors["new"]
    elif age <= factors["mid_max_age"]:
        return factors["mid"]
    return factors["old"]


def get_multi_vehicle_discount(vehicle_count: int, tables: Optional[Dict[str, Any]] = None) -> float:
    """Discount for the second and later vehicles: max(0.75, 0.9 - 0.05 * extra)."""
    if vehicle_count < 2:
        return 1.0

    discount = _tables(tables)["multi_vehicle_discount"]
    extra_vehicles = vehicle_count - 1
    value = discount["start"] - discount["step"] * extra_vehicles
    return round(max(discount["floor"], value), 4)


def calculate_driver_age(birth_date: date, today: Optional[date] = None) -> int:
    """Age in whole years using 365.25-day years."""
    today = today or date.today()
    return math.floor((today - birth_date).days / DAYS_PER_YEAR)


def get_driver_factor(driver_age: int, tables: Optional[Dict[str, Any]] = None) -> float:
    factors = _tables(tables)["driver_age_factors"]

    if driver_age < factors["young_under"]:
        return factors["young"]
    elif driver_age >= factors["senior_from"]:
        return factors["senior"]
    return factors["standard"]


def get_additional_drivers_factor(driver_count: int, tables: Optional[Dict[str, Any]] = None) -> float:
    surcharge = _tables(tables)["additional_driver_surcharge"]
    return round(1 + surcharge * driver_count, 4)


def _tier_key(selection: Any) -> Optional[str]:
    if selection is None:
        return None
    if isinstance(selection, float) and selection.is_integer():
        selection = int(selection)
    key = str(selection).replace("$", "").replace(",", "").strip()
    return key or None


def _tier_surcharge(tier_table: Dict[str, Any], selection: Any) -> float:
    key = _tier_key(selection)
    if key is None:
        return tier_table["default"]
    return tier_table.get(key, tier_table["default"])


def get_coverage_factor(coverages: Optional[Any], tables: Optional[Dict[str, Any]] = None) -> float:
    """
    Coverage factor: 1.0 plus additive surcharges for each selected option.

    Missing limits and deductibles fall back to each table's default tier.
    No coverage object at all (incomplete quote) leaves the factor at 1.0.
    """
    if coverages is None:
        return 1.0

    surcharges = _tables(tables)["coverage_surcharges"]
    factor = 1.0

    factor += _tier_surcharge(surcharges["bodily_injury"], coverages.bodily_injury_limit)
    factor += _tier_surcharge(surcharges["property_damage"], coverages.property_damage_limit)

    if coverages.collision:
        factor += _tier_surcharge(surcharges["collision"], coverages.collision_deductible)
    if coverages.comprehensive:
        factor += _tier_surcharge(surcharges["comprehensive"], coverages.comprehensive_deductible)
    if coverages.uninsured_motorist:
        factor += surcharges["uninsured_motorist"]
    if coverages.roadside_assistance:
        factor += surcharges["roadside_assistance"]
    if coverages.rental_reimbursement:
        factor += _tier_surcharge(surcharges["rental_reimbursement"], coverages.rental_limit)

    return round(factor, 4)


def require_vehicle(vehicles: Sequence[Any]) -> None:
    if not vehicles:
        raise ValidationError("At least one vehicle is required to finalize a premium", field="vehicles")


def calculate_premium_breakdown(
    birth_date: date,
    additional_drivers: Sequence[Any],
    vehicles: Sequence[Any],
    coverages: Optional[Any],
    progressive: bool = True,
    today: Optional[date] = None,
    tables: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Calculate a premium with every factor that produced it.

    Args:
        birth_date: Primary driver birth date
        additional_drivers: Additional drivers (only the count is rated)
        vehicles: Vehicles, first one drives the age factor
        coverages: Coverage selections, or None for an incomplete quote
        progressive: Progressive variant applies the multi-vehicle discount and
            tolerates missing vehicles; the finalizing variant rejects them
        today: Rating date (defaults to today)
        tables: Rating tables (defaults to cached config)

    Returns:
        Breakdown dict including the rounded ``total``
    """
    tables = _tables(tables)
    today = today or date.today()

    if not progressive:
        require_vehicle(vehicles)

    base = tables["base_premium"]
    vehicle_factor = get_vehicle_factor(vehicles, today, tables)
    multi_vehicle_discount = get_multi_vehicle_discount(len(vehicles), tables) if progressive else 1.0
    driver_age = calculate_driver_age(birth_date, today)
    driver_factor = get_driver_factor(driver_age, tables)
    additional_drivers_factor = get_additional_drivers_factor(len(additional_drivers), tables)
    coverage_factor = get_coverage_factor(coverages, tables)

    total = round_currency(
        base
        * vehicle_factor
        * multi_vehicle_discount
        * driver_factor
        * additional_drivers_factor
        * coverage_factor
    )

    breakdown = {
        "base": base,
        "vehicle_age": calculate_vehicle_age(vehicles[0].year, today) if vehicles else None,
        "vehicle_factor": vehicle_factor,
        "multi_vehicle_discount": multi_vehicle_discount,
        "driver_age": driver_age,
        "driver_factor": driver_factor,
        "additional_drivers_factor": additional_drivers_factor,
        "coverage_factor": coverage_factor,
        "total": total,
    }

    logger.debug(
        f"Premium calculated | progressive={progressive} | "
        + " | ".join(f"{key}={value}" for key, value in breakdown.items())
    )

    return breakdown


def calculate_premium_progressive(
    birth_date: date,
    additional_drivers: Sequence[Any],
    vehicles: Sequence[Any],
    coverages: Optional[Any],
    today: Optional[date] = None,
    tables: Optional[Dict[str, Any]] = None
) -> int:
    """Premium during multi-step quote assembly."""
    return calculate_premium_breakdown(
        birth_date, additional_drivers, vehicles, coverages, True, today, tables
    )["total"]


def calculate_premium(
    birth_date: date,
    additional_drivers: Sequence[Any],
    vehicles: Sequence[Any],
    coverages: Optional[Any],
    today: Optional[date] = None,
    tables: Optional[Dict[str, Any]] = None
) -> int:
    """Premium for a one-shot, complete quote. Raises ValidationError without a vehicle."""
    return calculate_premium_breakdown(
        birth_date, additional_drivers, vehicles, coverages, False, today, tables
    )["total"]


def build_premium(total: int) -> Dict[str, Any]:
    """Total, monthly (one sixth, to the cent) and six-month amounts."""
    return {
        "total": total,
        "monthly": round(total / 6, 2),
        "six_month": total,
    }
