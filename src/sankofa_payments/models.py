"""Payment domain models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PaymentMethodKind(str, Enum):
    """Kinds of stored payment instruments."""

    MOBILE_MONEY = "mobile_money"
    CREDIT_CARD = "credit_card"
    BANK_CARD = "bank_card"


class PaymentMethodStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    EXPIRED = "expired"


class PaymentType(str, Enum):
    """How a transaction was settled. Cash has no stored instrument kind."""

    MOBILE_MONEY = "mobile_money"
    CREDIT_CARD = "credit_card"
    BANK_CARD = "bank_card"
    CASH = "cash"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RideTier(str, Enum):
    STANDARD = "standard"
    PREMIUM = "premium"


class PaymentMethod(BaseModel):
    """A user's stored payment instrument."""

    id: str
    user_id: str
    kind: PaymentMethodKind
    provider: str
    account_details: dict[str, Any] = Field(default_factory=dict)
    is_default: bool = False
    status: PaymentMethodStatus = PaymentMethodStatus.ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PaymentTransaction(BaseModel):
    """Outcome of a payment attempt against a ride."""

    id: str
    user_id: str
    ride_id: str | None = None
    amount: Decimal = Field(ge=0, decimal_places=2)
    currency: str
    payment_method_id: str
    payment_type: PaymentType
    status: TransactionStatus
    transaction_ref: str | None = None
    idempotency_key: str | None = None
    provider_response: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TransactionHistoryEntry(PaymentTransaction):
    """Transaction joined with display-safe details of its payment method."""

    payment_method_provider: str
    payment_method_account_details: dict[str, Any] = Field(default_factory=dict)


class MobileMoneyAccount(BaseModel):
    """Account details required to charge a mobile-money wallet."""

    model_config = ConfigDict(extra="ignore")

    phone: str = Field(min_length=1)


class CardAccount(BaseModel):
    """Stored details of a card.

    Accepts the camelCase keys the front-end stores as well as snake_case.
    The security code is not part of the stored method; it arrives with
    each charge. A legacy record that still carries one is accepted.
    """

    model_config = ConfigDict(extra="ignore")

    card_number: str = Field(
        min_length=12, validation_alias=AliasChoices("card_number", "cardNumber")
    )
    expiry_month: str = Field(
        min_length=1, validation_alias=AliasChoices("expiry_month", "expiryMonth")
    )
    expiry_year: str = Field(
        min_length=2, validation_alias=AliasChoices("expiry_year", "expiryYear")
    )
    cardholder_name: str = Field(
        min_length=1, validation_alias=AliasChoices("cardholder_name", "cardholderName")
    )
    cvv: str | None = Field(default=None, min_length=3, max_length=4)


class PaymentResult(BaseModel):
    """User-facing result of a ride payment. Failures never raise."""

    success: bool
    transaction: PaymentTransaction | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, transaction: PaymentTransaction) -> "PaymentResult":
        return cls(success=True, transaction=transaction)

    @classmethod
    def failed(cls, error: str, error_code: str | None = None) -> "PaymentResult":
        return cls(success=False, error=error, error_code=error_code)
