"""Repository layer for database CRUD operations."""

from .payment_method_repository import PaymentMethodRepository, owner_lock
from .transaction_repository import TransactionRepository

__all__ = ["PaymentMethodRepository", "TransactionRepository", "owner_lock"]
