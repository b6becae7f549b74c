"""Vodafone Cash adapter."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import IncompletePaymentMethod
from ..models import MobileMoneyAccount, PaymentMethod, PaymentMethodKind
from .base import ChargeContext, ProviderAdapter, ProviderResult, epoch_millis

VODAFONE_PROVIDER_NAME = "Vodafone Cash"


class VodafoneCashPaymentRequest(BaseModel):
    reference: str
    amount: Decimal
    currency: str
    phone: str
    description: str


class VodafoneCashAdapter(ProviderAdapter[VodafoneCashPaymentRequest]):
    name = "vodafone_cash"
    kinds = frozenset({PaymentMethodKind.MOBILE_MONEY})
    provider_names = (VODAFONE_PROVIDER_NAME,)
    endpoint = "/payments"

    def build_request(
        self, method: PaymentMethod, charge: ChargeContext
    ) -> VodafoneCashPaymentRequest:
        try:
            account = MobileMoneyAccount.model_validate(method.account_details)
        except PydanticValidationError as e:
            raise IncompletePaymentMethod(
                "Mobile money payment method has no phone number",
                details={"payment_method_id": method.id},
            ) from e

        return VodafoneCashPaymentRequest(
            reference=charge.transaction_ref,
            amount=charge.amount,
            currency=charge.currency,
            phone=account.phone,
            description=charge.description,
        )

    def to_payload(self, request: VodafoneCashPaymentRequest) -> dict[str, Any]:
        return request.model_dump(mode="json")

    def simulate(self, request: VodafoneCashPaymentRequest) -> dict[str, Any]:
        return {
            "transactionId": f"voda_{epoch_millis()}",
            "reference": request.reference,
            "amount": float(request.amount),
            "currency": request.currency,
            "status": "SUCCESS",
        }

    def parse_response(
        self, request: VodafoneCashPaymentRequest, payload: dict[str, Any]
    ) -> ProviderResult:
        status = str(payload.get("status", "")).upper()
        return ProviderResult(
            provider=self.name,
            provider_transaction_id=str(payload.get("transactionId", "")),
            status=status,
            succeeded=status == "SUCCESS",
            amount=Decimal(str(payload.get("amount", request.amount))),
            currency=str(payload.get("currency", request.currency)),
            raw=payload,
        )
