"""
Rating engine tests: factor tables, coverage tiers and premium totals.
"""

import pytest
from datetime import date, timedelta

from autoquote.errors import ValidationError
from autoquote.schemas import Vehicle, AdditionalDriver, Coverages
from autoquote.services.rating import (
    round_currency,
    get_vehicle_factor,
    get_multi_vehicle_discount,
    calculate_driver_age,
    get_driver_factor,
    get_additional_drivers_factor,
    get_coverage_factor,
    calculate_premium_breakdown,
    calculate_premium_progressive,
    calculate_premium,
    build_premium,
)

TODAY = date(2025, 6, 15)


def vehicle(age: int) -> Vehicle:
    return Vehicle(year=TODAY.year - age, make="Toyota", model="Camry")


def additional_driver(n: int) -> AdditionalDriver:
    return AdditionalDriver(
        first_name="Extra",
        last_name=f"Driver{n}",
        birth_date=date(1990, 1, 1),
        email=f"extra{n}@example.com",
    )


def birth_date_for_age(age: int) -> date:
    return TODAY - timedelta(days=int((age + 0.5) * 365.25))


class TestVehicleFactor:
    """Vehicle age bands on the first vehicle."""

    @pytest.mark.parametrize("age", [0, 1, 2, 3])
    def test_new_vehicle(self, age):
        assert get_vehicle_factor([vehicle(age)], TODAY) == 1.3

    @pytest.mark.parametrize("age", [4, 5, 6, 7])
    def test_mid_age_vehicle(self, age):
        assert get_vehicle_factor([vehicle(age)], TODAY) == 1.0

    @pytest.mark.parametrize("age", [8, 12, 30])
    def test_old_vehicle(self, age):
        assert get_vehicle_factor([vehicle(age)], TODAY) == 0.9

    def test_no_vehicle(self):
        assert get_vehicle_factor([], TODAY) == 1.0

    def test_only_first_vehicle_counts(self):
        assert get_vehicle_factor([vehicle(10), vehicle(1)], TODAY) == 0.9


class TestMultiVehicleDiscount:

    def test_single_vehicle_has_no_discount(self):
        assert get_multi_vehicle_discount(0) == 1.0
        assert get_multi_vehicle_discount(1) == 1.0

    def test_discount_steps_down_per_extra_vehicle(self):
        assert get_multi_vehicle_discount(2) == 0.85
        assert get_multi_vehicle_discount(3) == 0.8

    def test_discount_floor(self):
        assert get_multi_vehicle_discount(4) == 0.75
        assert get_multi_vehicle_discount(10) == 0.75


class TestDriverFactor:

    def test_driver_age_uses_whole_years(self):
        assert calculate_driver_age(birth_date_for_age(35), TODAY) == 35

    @pytest.mark.parametrize("age,expected", [
        (16, 1.8),
        (24, 1.8),
        (25, 1.0),
        (64, 1.0),
        (65, 1.2),
        (80, 1.2),
    ])
    def test_age_bands(self, age, expected):
        assert get_driver_factor(age) == expected


class TestAdditionalDrivers:

    @pytest.mark.parametrize("count", [0, 1, 2, 3, 5])
    def test_factor_is_linear(self, count):
        assert get_additional_drivers_factor(count) == pytest.approx(1 + 0.15 * count)

    @pytest.mark.parametrize("count", [0, 1, 2, 3, 5])
    def test_premium_with_n_additional_drivers(self, count):
        drivers = [additional_driver(n) for n in range(count)]
        premium = calculate_premium_progressive(birth_date_for_age(40), drivers, [], None, today=TODAY)
        assert premium == round(1000 * (1 + 0.15 * count))


class TestCoverageFactor:
    """Additive surcharges per selected coverage."""

    def test_no_coverage_object(self):
        assert get_coverage_factor(None) == 1.0

    @pytest.mark.parametrize("limit,surcharge", [
        ("25/50", 0.05),
        ("50/100", 0.10),
        ("100/300", 0.15),
        ("250/500", 0.25),
        ("500/1000", 0.15),
    ])
    def test_bodily_injury_tiers(self, limit, surcharge):
        coverages = Coverages(bodily_injury_limit=limit, property_damage_limit="25000")
        assert get_coverage_factor(coverages) == pytest.approx(1 + surcharge + 0.03)

    @pytest.mark.parametrize("limit,surcharge", [
        ("25000", 0.03),
        ("$50,000", 0.05),
        (100000, 0.08),
        ("75000", 0.05),
    ])
    def test_property_damage_tiers(self, limit, surcharge):
        coverages = Coverages(bodily_injury_limit="25/50", property_damage_limit=limit)
        assert get_coverage_factor(coverages) == pytest.approx(1 + 0.05 + surcharge)

    def test_missing_limits_use_default_tiers(self):
        assert get_coverage_factor(Coverages()) == pytest.approx(1 + 0.15 + 0.05)

    @pytest.mark.parametrize("deductible,surcharge", [(250, 0.35), (500, 0.30), (1000, 0.25), (2500, 0.20), (None, 0.30)])
    def test_collision_deductible_tiers(self, deductible, surcharge):
        coverages = Coverages(collision=True, collision_deductible=deductible)
        assert get_coverage_factor(coverages) == pytest.approx(1.2 + surcharge)

    @pytest.mark.parametrize("deductible,surcharge", [(250, 0.25), (500, 0.20), (1000, 0.15), (2500, 0.10), (750, 0.20)])
    def test_comprehensive_deductible_tiers(self, deductible, surcharge):
        coverages = Coverages(comprehensive=True, comprehensive_deductible=deductible)
        assert get_coverage_factor(coverages) == pytest.approx(1.2 + surcharge)

    def test_deductible_ignored_when_coverage_not_selected(self):
        coverages = Coverages(collision=False, collision_deductible=250)
        assert get_coverage_factor(coverages) == pytest.approx(1.2)

    def test_flat_surcharges(self):
        coverages = Coverages(uninsured_motorist=True, roadside_assistance=True)
        assert get_coverage_factor(coverages) == pytest.approx(1.2 + 0.10 + 0.05)

    @pytest.mark.parametrize("limit,surcharge", [(30, 0.03), (50, 0.05), (75, 0.07), (None, 0.05)])
    def test_rental_reimbursement_tiers(self, limit, surcharge):
        coverages = Coverages(rental_reimbursement=True, rental_limit=limit)
        assert get_coverage_factor(coverages) == pytest.approx(1.2 + surcharge)


class TestPremium:

    def test_reference_scenario(self):
        """Age 35, vehicle age 6, 100/300 BI, 50000 PD, collision at $500."""
        coverages = Coverages(
            bodily_injury_limit="100/300",
            property_damage_limit="50000",
            collision=True,
            collision_deductible=500,
        )
        premium = calculate_premium(birth_date_for_age(35), [], [vehicle(6)], coverages, today=TODAY)
        assert premium == 1500

    def test_variants_agree_for_one_vehicle(self):
        args = (birth_date_for_age(22), [additional_driver(1)], [vehicle(2)], Coverages(uninsured_motorist=True))
        assert calculate_premium(*args, today=TODAY) == calculate_premium_progressive(*args, today=TODAY)

    def test_progressive_applies_multi_vehicle_discount(self):
        vehicles = [vehicle(5), vehicle(9)]
        progressive = calculate_premium_progressive(birth_date_for_age(40), [], vehicles, None, today=TODAY)
        finalizing = calculate_premium(birth_date_for_age(40), [], vehicles, None, today=TODAY)
        assert progressive == 850
        assert finalizing == 1000

    def test_progressive_tolerates_missing_vehicle(self):
        assert calculate_premium_progressive(birth_date_for_age(40), [], [], None, today=TODAY) == 1000

    def test_finalizing_requires_vehicle(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_premium(birth_date_for_age(40), [], [], Coverages(), today=TODAY)
        assert exc_info.value.details == {"field": "vehicles"}

    def test_breakdown_lists_every_factor(self):
        breakdown = calculate_premium_breakdown(
            birth_date_for_age(70), [additional_driver(1)], [vehicle(1)], None, today=TODAY
        )
        assert breakdown["vehicle_age"] == 1
        assert breakdown["vehicle_factor"] == 1.3
        assert breakdown["driver_factor"] == 1.2
        assert breakdown["additional_drivers_factor"] == 1.15
        assert breakdown["total"] == round(1000 * 1.3 * 1.2 * 1.15)

    def test_young_driver_new_vehicle_full_coverage(self):
        coverages = Coverages(
            bodily_injury_limit="250/500",
            property_damage_limit="100000",
            collision=True,
            collision_deductible=250,
            comprehensive=True,
            comprehensive_deductible=250,
            uninsured_motorist=True,
            roadside_assistance=True,
            rental_reimbursement=True,
            rental_limit=75,
        )
        premium = calculate_premium(birth_date_for_age(19), [], [vehicle(0)], coverages, today=TODAY)
        # 1000 * 1.3 * 1.8 * 2.15
        assert premium == 5031


class TestRounding:

    def test_half_rounds_up(self):
        assert round_currency(1234.5) == 1235
        assert round_currency(1233.5) == 1234

    def test_float_noise_is_trimmed(self):
        assert round_currency(1000 * 1.3 * 1.15) == 1495
        assert round_currency(1499.9999999998) == 1500

    def test_build_premium(self):
        premium = build_premium(1500)
        assert premium == {"total": 1500, "monthly": 250.0, "six_month": 1500}
        assert build_premium(1001)["monthly"] == 166.83
