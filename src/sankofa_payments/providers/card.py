"""Card network adapter for credit and bank cards.

Card number and CVV are held as SecretStr so they never render in reprs,
and every loggable view of a request goes through ``describe``.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, SecretStr
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import IncompletePaymentMethod
from ..masking import mask_card_number
from ..models import CardAccount, PaymentMethod, PaymentMethodKind
from .base import ChargeContext, ProviderAdapter, ProviderResult, epoch_millis

CARD_TYPES = {"4": "visa", "5": "mastercard", "3": "amex", "6": "discover"}


class CardPaymentRequest(BaseModel):
    reference: str
    amount: Decimal
    currency: str
    card_number: SecretStr
    expiry_month: str
    expiry_year: str
    cvv: SecretStr | None = None
    cardholder_name: str
    description: str

    @property
    def last4(self) -> str:
        return self.card_number.get_secret_value()[-4:]


class CardAdapter(ProviderAdapter[CardPaymentRequest]):
    name = "card"
    kinds = frozenset({PaymentMethodKind.CREDIT_CARD, PaymentMethodKind.BANK_CARD})
    endpoint = "/charges"

    def build_request(self, method: PaymentMethod, charge: ChargeContext) -> CardPaymentRequest:
        try:
            account = CardAccount.model_validate(method.account_details)
        except PydanticValidationError as e:
            missing = sorted(str(err["loc"][0]) for err in e.errors() if err["loc"])
            # from None: the pydantic error echoes the raw card number
            raise IncompletePaymentMethod(
                "Card payment method is missing required details",
                details={"payment_method_id": method.id, "fields": missing},
            ) from None

        cvv = charge.card_security_code
        if cvv is None and account.cvv:
            cvv = SecretStr(account.cvv)

        return CardPaymentRequest(
            reference=charge.transaction_ref,
            amount=charge.amount,
            currency=charge.currency,
            card_number=SecretStr(account.card_number.replace(" ", "")),
            expiry_month=account.expiry_month,
            expiry_year=account.expiry_year,
            cvv=cvv,
            cardholder_name=account.cardholder_name,
            description=charge.description,
        )

    def to_payload(self, request: CardPaymentRequest) -> dict[str, Any]:
        payload = {
            "reference": request.reference,
            "amount": str(request.amount),
            "currency": request.currency,
            "cardNumber": request.card_number.get_secret_value(),
            "expiryMonth": request.expiry_month,
            "expiryYear": request.expiry_year,
            "cardholderName": request.cardholder_name,
            "description": request.description,
        }
        # Stored cards without a code are charged as card-on-file
        if request.cvv is not None:
            payload["cvv"] = request.cvv.get_secret_value()
        return payload

    def headers(self, request: CardPaymentRequest) -> dict[str, str]:
        headers = super().headers(request)
        headers["Idempotency-Key"] = request.reference
        return headers

    def describe(self, request: CardPaymentRequest) -> dict[str, Any]:
        described = {
            **self.to_payload(request),
            "cardNumber": mask_card_number(request.card_number.get_secret_value()),
        }
        if "cvv" in described:
            described["cvv"] = "***"
        return described

    def simulate(self, request: CardPaymentRequest) -> dict[str, Any]:
        now = epoch_millis()
        card_number = request.card_number.get_secret_value()
        return {
            "transactionId": f"card_{now}",
            "amount": float(request.amount),
            "currency": request.currency,
            "status": "success",
            "reference": f"TXN_{now}",
            "merchantReference": request.reference,
            "authorization": {
                "authorization_code": f"AUTH_{now}",
                "card_type": CARD_TYPES.get(card_number[:1], "unknown"),
                "last4": request.last4,
                "exp_month": request.expiry_month,
                "exp_year": request.expiry_year,
                "bin": card_number[:6],
                "bank": "Sandbox Bank",
            },
        }

    def parse_response(self, request: CardPaymentRequest, payload: dict[str, Any]) -> ProviderResult:
        status = str(payload.get("status", "")).lower()
        return ProviderResult(
            provider=self.name,
            provider_transaction_id=str(payload.get("transactionId", "")),
            status=status,
            succeeded=status == "success",
            amount=Decimal(str(payload.get("amount", request.amount))),
            currency=str(payload.get("currency", request.currency)),
            raw=payload,
        )
