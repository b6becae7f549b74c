from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentSettings(BaseSettings):
    currency: str = Field(default="GHS", min_length=3, max_length=3)
    database_url: str = "sqlite:///data/payments.db"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"
    environment: str = "development"

    # Provider call policy
    provider_timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)
    provider_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total attempts per provider call, including the first",
    )
    provider_retry_base_delay: float = Field(default=0.5, ge=0.0, le=5.0)
    provider_retry_multiplier: float = Field(default=2.0, ge=1.0, le=5.0)

    payee_note: str = "Sankofa Ride payment"
    transaction_history_limit: int = Field(default=50, ge=1, le=1000)

    model_config = SettingsConfigDict(env_prefix="PAYMENTS_")

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if not v.isalpha():
            raise ValueError("Currency must be a three-letter code")
        return v.upper()


class ProviderSettings(BaseSettings):
    """Connection details shared by every provider.

    An empty ``base_url`` keeps the adapter in sandbox mode, where the
    provider round trip is simulated locally.
    """

    base_url: str = ""
    api_key: str = ""
    simulated_latency_seconds: float = Field(default=0.0, ge=0.0, le=30.0)

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Provider base URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def live(self) -> bool:
        return bool(self.base_url)


class MTNMoMoSettings(ProviderSettings):
    subscription_key: str = ""
    target_environment: Literal["sandbox", "production"] = "sandbox"
    simulated_latency_seconds: float = Field(default=2.0, ge=0.0, le=30.0)
    # Request-to-pay is asynchronous; the outcome is read from the status endpoint
    status_poll_attempts: int = Field(default=5, ge=1, le=30)
    status_poll_interval_seconds: float = Field(default=1.0, ge=0.0, le=30.0)

    model_config = SettingsConfigDict(env_prefix="MTN_MOMO_")


class VodafoneCashSettings(ProviderSettings):
    simulated_latency_seconds: float = Field(default=1.8, ge=0.0, le=30.0)

    model_config = SettingsConfigDict(env_prefix="VODAFONE_CASH_")


class CardGatewaySettings(ProviderSettings):
    simulated_latency_seconds: float = Field(default=2.5, ge=0.0, le=30.0)

    model_config = SettingsConfigDict(env_prefix="CARD_GATEWAY_")


class Settings(BaseSettings):
    payments: PaymentSettings = Field(default_factory=PaymentSettings)
    mtn_momo: MTNMoMoSettings = Field(default_factory=MTNMoMoSettings)
    vodafone_cash: VodafoneCashSettings = Field(default_factory=VodafoneCashSettings)
    card_gateway: CardGatewaySettings = Field(default_factory=CardGatewaySettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
