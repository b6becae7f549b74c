from typing import Any

import pytest
from sqlalchemy.orm import sessionmaker

from sankofa_payments.core.retry import RetryConfig
from sankofa_payments.db.database import init_database
from sankofa_payments.providers import (
    MTN_PROVIDER_NAME,
    VODAFONE_PROVIDER_NAME,
    AdapterRegistry,
    CardAdapter,
    MTNMoMoAdapter,
    VodafoneCashAdapter,
)
from sankofa_payments.service import PaymentService
from sankofa_payments.settings import (
    CardGatewaySettings,
    MTNMoMoSettings,
    PaymentSettings,
    VodafoneCashSettings,
)

TEST_CARD = {
    "card_number": "4111111111111111",
    "expiry_month": "12",
    "expiry_year": "2027",
    "cardholder_name": "Ama Mensah",
    "cvv": "731",
}


@pytest.fixture
def temp_sqlite_db(tmp_path):
    """Temporary SQLite database for persistence tests."""
    return tmp_path / "test_payments.db"


@pytest.fixture
def session_maker(temp_sqlite_db) -> sessionmaker[Any]:
    return init_database(str(temp_sqlite_db))


@pytest.fixture
def mtn_adapter() -> MTNMoMoAdapter:
    return MTNMoMoAdapter(MTNMoMoSettings(base_url="", simulated_latency_seconds=0.0))


@pytest.fixture
def vodafone_adapter() -> VodafoneCashAdapter:
    return VodafoneCashAdapter(VodafoneCashSettings(base_url="", simulated_latency_seconds=0.0))


@pytest.fixture
def card_adapter() -> CardAdapter:
    return CardAdapter(CardGatewaySettings(base_url="", simulated_latency_seconds=0.0))


@pytest.fixture
def adapter_registry(mtn_adapter, vodafone_adapter, card_adapter) -> AdapterRegistry:
    """Sandbox adapters with no simulated latency."""
    return AdapterRegistry([mtn_adapter, vodafone_adapter, card_adapter])


@pytest.fixture
def fast_retry() -> RetryConfig:
    return RetryConfig(max_attempts=3, base_delay=0.0)


@pytest.fixture
def payment_settings() -> PaymentSettings:
    return PaymentSettings(currency="GHS", provider_timeout_seconds=5.0)


@pytest.fixture
def payment_service(session_maker, adapter_registry, payment_settings, fast_retry) -> PaymentService:
    return PaymentService(session_maker, adapter_registry, payment_settings, retry_config=fast_retry)


@pytest.fixture
def mtn_method(payment_service):
    return payment_service.add_payment_method(
        "rider-1", "mobile_money", MTN_PROVIDER_NAME, {"phone": "0241234567"}, is_default=True
    )


@pytest.fixture
def vodafone_method(payment_service):
    return payment_service.add_payment_method(
        "rider-1", "mobile_money", VODAFONE_PROVIDER_NAME, {"phone": "0201234567"}
    )


@pytest.fixture
def card_method(payment_service):
    return payment_service.add_payment_method("rider-1", "credit_card", "Visa", dict(TEST_CARD))


@pytest.fixture
def card_details() -> dict[str, str]:
    """Complete card account details as stored by the rider app."""
    return dict(TEST_CARD)
