from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

from .models import RideTier

CENTS = Decimal("0.01")


class FareBreakdown(BaseModel):
    """Detailed breakdown of fare components."""

    base_fare: Decimal = Field(ge=0)
    distance_fare: Decimal = Field(ge=0)
    time_fare: Decimal = Field(ge=0)
    total: Decimal = Field(ge=0)
    currency: str


class FareCalculator:
    """Calculates ride fares from distance, duration and ride tier."""

    BASE_FARES = {RideTier.STANDARD: Decimal("3.00"), RideTier.PREMIUM: Decimal("5.00")}
    PER_KM_RATES = {RideTier.STANDARD: Decimal("1.50"), RideTier.PREMIUM: Decimal("2.50")}
    PER_MIN_RATE = Decimal("0.25")

    def __init__(self, currency: str = "GHS"):
        self.currency = currency

    def calculate(
        self,
        distance_km: float,
        duration_min: float,
        tier: RideTier | str = RideTier.STANDARD,
    ) -> FareBreakdown:
        """
        Calculate fare for a ride.

        Only the total is rounded (half-up, 2 places); the components are
        exact products so they can be audited against the rate card.
        """
        if distance_km < 0:
            raise ValueError("Distance must be non-negative")
        if duration_min < 0:
            raise ValueError("Duration must be non-negative")
        tier = RideTier(tier)

        # str() keeps 12.5 as 12.5 instead of its binary float expansion
        base_fare = self.BASE_FARES[tier]
        distance_fare = Decimal(str(distance_km)) * self.PER_KM_RATES[tier]
        time_fare = Decimal(str(duration_min)) * self.PER_MIN_RATE

        total = (base_fare + distance_fare + time_fare).quantize(CENTS, rounding=ROUND_HALF_UP)

        return FareBreakdown(
            base_fare=base_fare,
            distance_fare=distance_fare,
            time_fare=time_fare,
            total=total,
            currency=self.currency,
        )


def calculate_ride_fare(
    distance_km: float,
    duration_min: float,
    tier: RideTier | str = RideTier.STANDARD,
    currency: str = "GHS",
) -> FareBreakdown:
    """Price a ride. Inputs must be non-negative."""
    return FareCalculator(currency).calculate(distance_km, duration_min, tier)
