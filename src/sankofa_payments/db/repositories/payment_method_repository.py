"""Payment method repository: a user's stored instruments and their default flag."""

import logging
import threading
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.exceptions import (
    PaymentMethodNotFound,
    StorageError,
    UnsupportedPaymentMethodType,
    ValidationError,
)
from ...masking import strip_secrets
from ...models import PaymentMethod as PaymentMethodDomain
from ...models import PaymentMethodKind, PaymentMethodStatus
from ..schema import PaymentMethod
from ..utils import utc_now

logger = logging.getLogger(__name__)

KNOWN_KINDS = {kind.value for kind in PaymentMethodKind}

OWNER_LOCK_STRIPES = 64

_owner_locks = tuple(threading.Lock() for _ in range(OWNER_LOCK_STRIPES))


def lock_for_owner(user_id: str) -> threading.Lock:
    """Striped lock for an owner; owners sharing a stripe serialize together."""
    return _owner_locks[hash(user_id) % OWNER_LOCK_STRIPES]


@contextmanager
def owner_lock(user_id: str) -> Iterator[None]:
    """Serialize default-flag changes for one owner across threads."""
    with lock_for_owner(user_id):
        yield


class PaymentMethodRepository:
    """Repository for payment method CRUD operations.

    Writes are flushed but not committed; wrap calls in
    ``db.transaction.transaction`` so default clearing and the insert
    commit together.
    """

    def __init__(self, session: Session):
        self.session = session

    def list_active(self, user_id: str) -> list[PaymentMethodDomain]:
        """Active methods for the owner, newest first."""
        stmt = (
            select(PaymentMethod)
            .where(
                PaymentMethod.user_id == user_id,
                PaymentMethod.status == PaymentMethodStatus.ACTIVE.value,
            )
            .order_by(PaymentMethod.created_at.desc())
        )
        try:
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list payment methods: {e}") from e

        methods = []
        for row in rows:
            if row.type not in KNOWN_KINDS:
                logger.warning(f"Skipping payment method {row.id} with unknown type {row.type!r}")
                continue
            methods.append(self._to_domain(row))
        return methods

    def get(self, user_id: str, method_id: str) -> PaymentMethodDomain | None:
        """Get a method by ID, scoped to its owner."""
        row = self._get_row(user_id, method_id)
        if row is None:
            return None
        if row.type not in KNOWN_KINDS:
            raise UnsupportedPaymentMethodType(
                details={"payment_method_id": method_id, "type": row.type}
            )
        return self._to_domain(row)

    def add(
        self,
        user_id: str,
        kind: PaymentMethodKind | str,
        provider: str,
        account_details: dict[str, Any],
        is_default: bool = False,
    ) -> PaymentMethodDomain:
        """Create an active payment method, taking over the default flag if asked.

        Security codes and PINs are dropped before the details are stored.
        """
        try:
            kind = PaymentMethodKind(kind)
        except ValueError as e:
            raise ValidationError(f"Unknown payment method kind: {kind}") from e
        if not provider:
            raise ValidationError("Provider is required")

        if is_default:
            self._clear_default(user_id)

        now = utc_now()
        row = PaymentMethod(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=kind.value,
            provider=provider,
            account_details=strip_secrets(account_details),
            is_default=is_default,
            status=PaymentMethodStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        self._flush("add payment method")
        return self._to_domain(row)

    def set_default(self, user_id: str, method_id: str) -> PaymentMethodDomain:
        """Make ``method_id`` the owner's only default method."""
        row = self._get_row(user_id, method_id)
        if row is None:
            raise PaymentMethodNotFound(details={"payment_method_id": method_id})

        self._clear_default(user_id)
        row.is_default = True
        row.updated_at = utc_now()
        self._flush("set default payment method")
        return self._to_domain(row)

    def _get_row(self, user_id: str, method_id: str) -> PaymentMethod | None:
        stmt = select(PaymentMethod).where(
            PaymentMethod.id == method_id,
            PaymentMethod.user_id == user_id,
        )
        try:
            return self.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load payment method: {e}") from e

    def _clear_default(self, user_id: str) -> None:
        stmt = (
            update(PaymentMethod)
            .where(PaymentMethod.user_id == user_id, PaymentMethod.is_default.is_(True))
            .values(is_default=False, updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        try:
            self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to clear default payment method: {e}") from e

    def _flush(self, operation: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to {operation}: {e}") from e

    def _to_domain(self, row: PaymentMethod) -> PaymentMethodDomain:
        return PaymentMethodDomain(
            id=row.id,
            user_id=row.user_id,
            kind=PaymentMethodKind(row.type),
            provider=row.provider,
            account_details=dict(row.account_details or {}),
            is_default=row.is_default,
            status=PaymentMethodStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
