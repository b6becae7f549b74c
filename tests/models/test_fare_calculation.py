from decimal import ROUND_HALF_UP, Decimal

import pytest

from sankofa_payments.fare import FareBreakdown, FareCalculator, calculate_ride_fare
from sankofa_payments.models import RideTier


class TestFareCalculator:
    @pytest.fixture
    def calculator(self):
        return FareCalculator()

    def test_fare_standard_scenario(self, calculator):
        breakdown = calculator.calculate(distance_km=12.5, duration_min=8.0, tier="standard")

        assert breakdown.base_fare == Decimal("3.00")
        assert breakdown.distance_fare == Decimal("18.75")
        assert breakdown.time_fare == Decimal("2.00")
        assert breakdown.total == Decimal("23.75")
        assert breakdown.currency == "GHS"

    def test_fare_premium_rates(self, calculator):
        breakdown = calculator.calculate(distance_km=10.0, duration_min=20.0, tier=RideTier.PREMIUM)

        assert breakdown.base_fare == Decimal("5.00")
        assert breakdown.distance_fare == Decimal("25.00")
        assert breakdown.time_fare == Decimal("5.00")
        assert breakdown.total == Decimal("35.00")

    def test_fare_defaults_to_standard(self, calculator):
        breakdown = calculator.calculate(distance_km=5.0, duration_min=10.0)

        assert isinstance(breakdown, FareBreakdown)
        assert breakdown.total == Decimal("13.00")

    def test_fare_zero_trip_is_base_fare(self, calculator):
        assert calculator.calculate(0.0, 0.0).total == Decimal("3.00")
        assert calculator.calculate(0.0, 0.0, "premium").total == Decimal("5.00")

    def test_fare_total_rounds_half_up(self, calculator):
        # 3.00 + 0.01 * 1.50 + 0 = 3.015
        breakdown = calculator.calculate(distance_km=0.01, duration_min=0.0)

        assert breakdown.distance_fare == Decimal("0.015")
        assert breakdown.total == Decimal("3.02")

    def test_fare_avoids_binary_float_drift(self, calculator):
        # 3.00 + 0.1 * 1.50 + 0.1 * 0.25 = 3.175 exactly
        assert calculator.calculate(0.1, 0.1).total == Decimal("3.18")

    @pytest.mark.parametrize(
        ("distance", "duration", "tier", "base", "rate"),
        [
            (3.3, 7.0, "standard", "3.00", "1.50"),
            (42.7, 55.5, "standard", "3.00", "1.50"),
            (3.3, 7.0, "premium", "5.00", "2.50"),
            (42.7, 55.5, "premium", "5.00", "2.50"),
        ],
    )
    def test_fare_matches_rate_card(self, calculator, distance, duration, tier, base, rate):
        expected = (
            Decimal(base)
            + Decimal(str(distance)) * Decimal(rate)
            + Decimal(str(duration)) * Decimal("0.25")
        ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

        assert calculator.calculate(distance, duration, tier).total == expected

    def test_fare_negative_distance(self, calculator):
        with pytest.raises(ValueError):
            calculator.calculate(distance_km=-5.0, duration_min=10.0)

    def test_fare_negative_duration(self, calculator):
        with pytest.raises(ValueError):
            calculator.calculate(distance_km=5.0, duration_min=-10.0)

    def test_fare_unknown_tier(self, calculator):
        with pytest.raises(ValueError):
            calculator.calculate(5.0, 10.0, "luxury")

    def test_fare_deterministic(self, calculator):
        breakdown1 = calculator.calculate(5.0, 10.0, "premium")
        breakdown2 = calculator.calculate(5.0, 10.0, "premium")

        assert breakdown1 == breakdown2

    def test_calculate_ride_fare_uses_currency(self):
        breakdown = calculate_ride_fare(1.0, 1.0, currency="NGN")

        assert breakdown.currency == "NGN"
        assert breakdown.total == Decimal("4.75")
