"""Database persistence module."""

from .database import init_database
from .schema import Base, PaymentMethod, PaymentTransaction
from .transaction import transaction

__all__ = [
    "init_database",
    "Base",
    "PaymentMethod",
    "PaymentTransaction",
    "transaction",
]
