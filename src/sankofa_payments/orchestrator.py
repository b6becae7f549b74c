"""Ride payment orchestration: method lookup, provider dispatch, ledger write."""

import asyncio
import logging
import weakref
from contextlib import nullcontext
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import SecretStr
from sqlalchemy.orm import sessionmaker

from .core.exceptions import (
    PaymentError,
    PaymentMethodNotFound,
    ProviderTimeoutError,
    ValidationError,
)
from .core.retry import RetryConfig, with_retry
from .db.repositories import PaymentMethodRepository, TransactionRepository
from .db.transaction import transaction
from .models import PaymentResult, PaymentTransaction, PaymentType
from .payment_logging import log_payment_context
from .providers.base import ChargeContext, ProviderAdapter, ProviderResult, epoch_millis
from .providers.registry import AdapterRegistry

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
FALLBACK_ERROR = "Payment processing failed"


def build_transaction_ref(ride_id: str) -> str:
    """Correlation reference of the form ``RIDE_<rideId>_<epoch ms>``."""
    return f"RIDE_{ride_id}_{epoch_millis()}"


class PaymentOrchestrator:
    """Ties method lookup, provider dispatch and the ledger write into one call.

    Every call makes at most one successful provider charge and one ledger
    write. Without an idempotency key, repeating a call charges and records
    again. Calls sharing an owner and idempotency key run one at a time, so
    a concurrent repeat waits and then replays the first result.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Any],
        adapters: AdapterRegistry,
        currency: str = "GHS",
        provider_timeout: float = 10.0,
        retry_config: RetryConfig | None = None,
        payee_note: str = "Sankofa Ride payment",
    ):
        self._session_factory = session_factory
        self._adapters = adapters
        self.currency = currency
        self.provider_timeout = provider_timeout
        self.retry_config = retry_config or RetryConfig()
        self.payee_note = payee_note
        self._idempotency_locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    async def process_ride_payment(
        self,
        ride_id: str,
        user_id: str,
        amount: Decimal | float | str,
        payment_method_id: str,
        transaction_ref: str | None = None,
        idempotency_key: str | None = None,
        card_security_code: str | None = None,
    ) -> PaymentResult:
        """Charge a ride to a stored payment method and record the outcome.

        Never raises: failures come back as ``PaymentResult(success=False)``
        carrying the error message and its code. ``card_security_code`` is
        forwarded to the card network for this charge and never stored.
        """
        transaction_ref = transaction_ref or build_transaction_ref(ride_id)

        with log_payment_context(transaction_ref, ride_id=ride_id, user_id=user_id):
            try:
                async with self._idempotency_guard(user_id, idempotency_key):
                    recorded = await self._process(
                        ride_id,
                        user_id,
                        amount,
                        payment_method_id,
                        transaction_ref,
                        idempotency_key,
                        card_security_code,
                    )
            except PaymentError as e:
                logger.warning(f"Payment for ride {ride_id} failed [{e.code}]: {e.message}")
                return PaymentResult.failed(e.message, e.code)
            except Exception as e:
                logger.exception(f"Unexpected error processing payment for ride {ride_id}")
                return PaymentResult.failed(str(e) or FALLBACK_ERROR, PaymentError.code)

            logger.info(f"Payment for ride {ride_id} recorded as {recorded.id}")
            return PaymentResult.ok(recorded)

    async def _process(
        self,
        ride_id: str,
        user_id: str,
        amount: Decimal | float | str,
        payment_method_id: str,
        transaction_ref: str,
        idempotency_key: str | None,
        card_security_code: str | None,
    ) -> PaymentTransaction:
        amount = self._validate_amount(amount)

        with self._session_factory() as session:
            if idempotency_key:
                ledger = TransactionRepository(session, self.currency)
                existing = ledger.find_by_idempotency_key(user_id, idempotency_key)
                if existing is not None:
                    logger.info(f"Replaying transaction {existing.id} for idempotency key")
                    return existing
            method = PaymentMethodRepository(session).get(user_id, payment_method_id)

        if method is None:
            raise PaymentMethodNotFound(details={"payment_method_id": payment_method_id})

        adapter = self._adapters.resolve(method.kind, method.provider)
        charge = ChargeContext(
            ride_id=ride_id,
            amount=amount,
            currency=self.currency,
            transaction_ref=transaction_ref,
            payee_note=self.payee_note,
            card_security_code=SecretStr(card_security_code) if card_security_code else None,
        )
        request = adapter.build_request(method, charge)

        result = await with_retry(
            lambda: self._call_provider(adapter, request),
            self.retry_config,
            operation_name=f"{adapter.name} payment",
        )

        with self._session_factory() as session, transaction(session):
            return TransactionRepository(session, self.currency).record(
                user_id=user_id,
                ride_id=ride_id,
                amount=amount,
                payment_method_id=method.id,
                payment_type=PaymentType(method.kind.value),
                transaction_ref=transaction_ref,
                provider_response=result.raw,
                idempotency_key=idempotency_key,
            )

    def _idempotency_guard(
        self, user_id: str, idempotency_key: str | None
    ) -> asyncio.Lock | nullcontext[None]:
        if not idempotency_key:
            return nullcontext()
        key = (user_id, idempotency_key)
        lock = self._idempotency_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._idempotency_locks[key] = lock
        return lock

    async def _call_provider(self, adapter: ProviderAdapter, request: Any) -> ProviderResult:
        try:
            return await asyncio.wait_for(adapter.process(request), timeout=self.provider_timeout)
        except TimeoutError as e:
            raise ProviderTimeoutError(
                f"{adapter.name} did not respond within {self.provider_timeout}s",
                details={"provider": adapter.name},
            ) from e

    def _validate_amount(self, amount: Decimal | float | str) -> Decimal:
        try:
            value = Decimal(str(amount))
        except InvalidOperation as e:
            raise ValidationError(f"Invalid amount: {amount!r}") from e
        if not value.is_finite():
            raise ValidationError(f"Invalid amount: {amount!r}")
        value = value.quantize(CENTS, rounding=ROUND_HALF_UP)
        if value <= 0:
            raise ValidationError("Amount must be a positive number")
        return value
