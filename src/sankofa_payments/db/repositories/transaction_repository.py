"""Transaction ledger: append-only record of payment outcomes."""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...core.exceptions import PaymentMethodNotFound, StorageError, ValidationError
from ...masking import display_account_details
from ...models import PaymentTransaction as PaymentTransactionDomain
from ...models import PaymentType, TransactionHistoryEntry, TransactionStatus
from ..schema import PaymentMethod, PaymentTransaction
from ..utils import utc_now

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class TransactionRepository:
    """Repository for payment transactions.

    Records are written with status ``completed``; this flow never mutates
    a transaction after it is recorded.
    """

    def __init__(self, session: Session, currency: str = "GHS"):
        self.session = session
        self.currency = currency

    def record(
        self,
        user_id: str,
        ride_id: str | None,
        amount: Decimal | float | str,
        payment_method_id: str,
        payment_type: PaymentType | str,
        transaction_ref: str | None = None,
        provider_response: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> PaymentTransactionDomain:
        """Persist a completed transaction and return the stored record.

        With an idempotency key the owner has already used, the earlier
        record is returned and nothing is written. A concurrent writer that
        wins the race on the unique key rolls back this session's pending
        work before the existing record is returned.
        """
        if idempotency_key:
            existing = self.find_by_idempotency_key(user_id, idempotency_key)
            if existing is not None:
                logger.info(f"Idempotency key {idempotency_key} already recorded as {existing.id}")
                return existing

        amount = Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
        if amount < 0:
            raise ValidationError("Amount must be non-negative")
        payment_type = PaymentType(payment_type)

        method_id = self._owned_method_id(user_id, payment_method_id)
        if method_id is None:
            raise PaymentMethodNotFound(details={"payment_method_id": payment_method_id})

        now = utc_now()
        row = PaymentTransaction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            ride_id=ride_id,
            amount=amount,
            currency=self.currency,
            payment_method_id=payment_method_id,
            payment_type=payment_type.value,
            status=TransactionStatus.COMPLETED.value,
            transaction_ref=transaction_ref,
            idempotency_key=idempotency_key,
            provider_response=provider_response,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            if idempotency_key:
                existing = self.find_by_idempotency_key(user_id, idempotency_key)
                if existing is not None:
                    return existing
            raise StorageError(f"Failed to record transaction: {e}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to record transaction: {e}") from e

        return self._to_domain(row)

    def find_by_idempotency_key(
        self, user_id: str, idempotency_key: str
    ) -> PaymentTransactionDomain | None:
        stmt = select(PaymentTransaction).where(
            PaymentTransaction.user_id == user_id,
            PaymentTransaction.idempotency_key == idempotency_key,
        )
        try:
            row = self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to look up idempotency key: {e}") from e
        return self._to_domain(row) if row else None

    def list_for_owner(self, user_id: str) -> list[PaymentTransactionDomain]:
        """All transactions for the owner, newest first."""
        stmt = (
            select(PaymentTransaction)
            .where(PaymentTransaction.user_id == user_id)
            .order_by(PaymentTransaction.created_at.desc())
        )
        try:
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list transactions: {e}") from e
        return [self._to_domain(r) for r in rows]

    def history(self, user_id: str, limit: int = 50) -> list[TransactionHistoryEntry]:
        """Most recent transactions joined with their payment method, newest first."""
        if limit < 1:
            raise ValidationError("Limit must be positive")

        stmt = (
            select(PaymentTransaction)
            .join(PaymentTransaction.payment_method)
            .options(joinedload(PaymentTransaction.payment_method))
            .where(PaymentTransaction.user_id == user_id)
            .order_by(PaymentTransaction.created_at.desc())
            .limit(limit)
        )
        try:
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load transaction history: {e}") from e

        return [
            TransactionHistoryEntry(
                **self._to_domain(row).model_dump(),
                payment_method_provider=row.payment_method.provider,
                payment_method_account_details=display_account_details(
                    row.payment_method.account_details or {}
                ),
            )
            for row in rows
        ]

    def _owned_method_id(self, user_id: str, payment_method_id: str) -> str | None:
        stmt = select(PaymentMethod.id).where(
            PaymentMethod.id == payment_method_id,
            PaymentMethod.user_id == user_id,
        )
        try:
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to verify payment method: {e}") from e

    def _to_domain(self, row: PaymentTransaction) -> PaymentTransactionDomain:
        return PaymentTransactionDomain(
            id=row.id,
            user_id=row.user_id,
            ride_id=row.ride_id,
            amount=Decimal(row.amount).quantize(CENTS),
            currency=row.currency,
            payment_method_id=row.payment_method_id,
            payment_type=PaymentType(row.payment_type),
            status=TransactionStatus(row.status),
            transaction_ref=row.transaction_ref,
            idempotency_key=row.idempotency_key,
            provider_response=row.provider_response,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
