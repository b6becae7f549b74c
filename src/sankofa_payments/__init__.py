"""Ride payment core: fares, payment methods, provider adapters and the ledger."""

from .fare import FareBreakdown, FareCalculator, calculate_ride_fare
from .models import PaymentResult
from .orchestrator import PaymentOrchestrator
from .service import PaymentService

__all__ = [
    "FareBreakdown",
    "FareCalculator",
    "calculate_ride_fare",
    "PaymentResult",
    "PaymentOrchestrator",
    "PaymentService",
]
