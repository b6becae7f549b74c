"""Inbound facade consumed by the rider/driver application layer."""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import sessionmaker

from .analytics import PaymentAnalytics, summarize_transactions
from .core.retry import RetryConfig
from .db.database import init_database
from .db.repositories import PaymentMethodRepository, TransactionRepository, owner_lock
from .db.transaction import transaction
from .fare import FareBreakdown, FareCalculator
from .models import (
    PaymentMethod,
    PaymentMethodKind,
    PaymentResult,
    RideTier,
    TransactionHistoryEntry,
)
from .orchestrator import PaymentOrchestrator
from .payment_logging import setup_logging
from .providers.registry import AdapterRegistry
from .settings import PaymentSettings, Settings, get_settings

logger = logging.getLogger(__name__)


class PaymentService:
    """Fares, payment methods, ride payments and transaction history for one deployment."""

    def __init__(
        self,
        session_factory: sessionmaker[Any],
        adapters: AdapterRegistry,
        settings: PaymentSettings | None = None,
        retry_config: RetryConfig | None = None,
    ):
        self.settings = settings or PaymentSettings()
        self._session_factory = session_factory
        self._fare_calculator = FareCalculator(self.settings.currency)
        self.orchestrator = PaymentOrchestrator(
            session_factory,
            adapters,
            currency=self.settings.currency,
            provider_timeout=self.settings.provider_timeout_seconds,
            retry_config=retry_config
            or RetryConfig(
                max_attempts=self.settings.provider_max_retries,
                base_delay=self.settings.provider_retry_base_delay,
                multiplier=self.settings.provider_retry_multiplier,
            ),
            payee_note=self.settings.payee_note,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, configure_logging: bool = False
    ) -> "PaymentService":
        """Wire database, adapters and retry policy from environment settings."""
        settings = settings or get_settings()
        if configure_logging:
            setup_logging(
                level=settings.payments.log_level,
                json_output=settings.payments.log_format == "json",
                environment=settings.payments.environment,
            )
        session_factory = init_database(settings.payments.database_url)
        return cls(session_factory, AdapterRegistry.from_settings(settings), settings.payments)

    def calculate_ride_fare(
        self,
        distance_km: float,
        duration_min: float,
        tier: RideTier | str = RideTier.STANDARD,
    ) -> FareBreakdown:
        return self._fare_calculator.calculate(distance_km, duration_min, tier)

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
        return await self.orchestrator.process_ride_payment(
            ride_id,
            user_id,
            amount,
            payment_method_id,
            transaction_ref=transaction_ref,
            idempotency_key=idempotency_key,
            card_security_code=card_security_code,
        )

    def add_payment_method(
        self,
        user_id: str,
        kind: PaymentMethodKind | str,
        provider: str,
        account_details: dict[str, Any],
        is_default: bool = False,
    ) -> PaymentMethod:
        """Store a new active method; clearing the old default commits with the insert."""
        with owner_lock(user_id), self._session_factory() as session, transaction(session):
            method = PaymentMethodRepository(session).add(
                user_id, kind, provider, account_details, is_default=is_default
            )
        logger.info(f"Added {method.kind.value} payment method {method.id} for user {user_id}")
        return method

    def set_default_payment_method(self, user_id: str, method_id: str) -> PaymentMethod:
        with owner_lock(user_id), self._session_factory() as session, transaction(session):
            return PaymentMethodRepository(session).set_default(user_id, method_id)

    def get_user_payment_methods(self, user_id: str) -> list[PaymentMethod]:
        with self._session_factory() as session:
            return PaymentMethodRepository(session).list_active(user_id)

    def get_user_transactions(
        self, user_id: str, limit: int | None = None
    ) -> list[TransactionHistoryEntry]:
        if limit is None:
            limit = self.settings.transaction_history_limit
        with self._session_factory() as session:
            return TransactionRepository(session, self.settings.currency).history(user_id, limit)

    def get_payment_analytics(self, user_id: str) -> PaymentAnalytics:
        with self._session_factory() as session:
            transactions = TransactionRepository(session, self.settings.currency).list_for_owner(
                user_id
            )
        return summarize_transactions(transactions)
