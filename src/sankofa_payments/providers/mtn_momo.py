"""MTN Mobile Money collection adapter (request-to-pay)."""

import asyncio
import logging
import uuid
from decimal import Decimal
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..core.exceptions import IncompletePaymentMethod, ProviderTimeoutError
from ..models import MobileMoneyAccount, PaymentMethod, PaymentMethodKind
from ..settings import MTNMoMoSettings
from .base import ChargeContext, ProviderAdapter, ProviderResult, epoch_millis

logger = logging.getLogger(__name__)

MTN_PROVIDER_NAME = "MTN Mobile Money"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MTNPayer(_CamelModel):
    party_id_type: Literal["MSISDN"] = "MSISDN"
    party_id: str


class MTNMoMoPaymentRequest(_CamelModel):
    amount: str
    currency: str
    external_id: str
    payer: MTNPayer
    payer_message: str
    payee_note: str


class MTNMoMoAdapter(ProviderAdapter[MTNMoMoPaymentRequest]):
    name = "mtn_momo"
    kinds = frozenset({PaymentMethodKind.MOBILE_MONEY})
    provider_names = (MTN_PROVIDER_NAME,)
    endpoint = "/collection/v1_0/requesttopay"

    settings: MTNMoMoSettings

    def build_request(self, method: PaymentMethod, charge: ChargeContext) -> MTNMoMoPaymentRequest:
        try:
            account = MobileMoneyAccount.model_validate(method.account_details)
        except PydanticValidationError as e:
            raise IncompletePaymentMethod(
                "Mobile money payment method has no phone number",
                details={"payment_method_id": method.id},
            ) from e

        return MTNMoMoPaymentRequest(
            amount=str(charge.amount),
            currency=charge.currency,
            external_id=charge.transaction_ref,
            payer=MTNPayer(party_id=account.phone),
            payer_message=charge.description,
            payee_note=charge.payee_note,
        )

    def to_payload(self, request: MTNMoMoPaymentRequest) -> dict[str, Any]:
        return request.model_dump(by_alias=True)

    def reference_id(self, request: MTNMoMoPaymentRequest) -> str:
        """Stable per transaction ref, so a retried request reuses it."""
        return str(uuid.uuid5(uuid.NAMESPACE_URL, request.external_id))

    def headers(self, request: MTNMoMoPaymentRequest) -> dict[str, str]:
        headers = super().headers(request)
        headers["X-Reference-Id"] = self.reference_id(request)
        headers["X-Target-Environment"] = self.settings.target_environment
        if self.settings.subscription_key:
            headers["Ocp-Apim-Subscription-Key"] = self.settings.subscription_key
        return headers

    async def _post(self, request: MTNMoMoPaymentRequest) -> dict[str, Any]:
        url = f"{self.settings.base_url}{self.endpoint}"
        headers = self.headers(request)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            # 202: accepted for processing; 409: an earlier attempt already
            # submitted this reference. Either way the outcome is polled.
            response = await self._send(
                client,
                "POST",
                url,
                accept=(202, 409),
                json=self.to_payload(request),
                headers=headers,
            )
            if response.status_code not in (202, 409) and response.content:
                return self._json(response)
            return await self._poll_status(client, f"{url}/{headers['X-Reference-Id']}", headers)

    async def _poll_status(
        self, client: httpx.AsyncClient, status_url: str, headers: dict[str, str]
    ) -> dict[str, Any]:
        attempts = self.settings.status_poll_attempts
        for attempt in range(attempts):
            if attempt:
                await asyncio.sleep(self.settings.status_poll_interval_seconds)
            data = self._json(await self._send(client, "GET", status_url, headers=headers))
            if str(data.get("status", "")).upper() != "PENDING":
                return data
            logger.debug(f"Request-to-pay still pending ({attempt + 1}/{attempts})")

        raise ProviderTimeoutError(
            f"{self.name} payment still pending after {attempts} status checks",
            details={"provider": self.name, "status": "PENDING"},
        )

    def simulate(self, request: MTNMoMoPaymentRequest) -> dict[str, Any]:
        return {
            "financialTransactionId": f"mtn_{epoch_millis()}",
            **self.to_payload(request),
            "status": "SUCCESSFUL",
        }

    def parse_response(
        self, request: MTNMoMoPaymentRequest, payload: dict[str, Any]
    ) -> ProviderResult:
        status = str(payload.get("status", "")).upper()
        return ProviderResult(
            provider=self.name,
            provider_transaction_id=str(payload.get("financialTransactionId", "")),
            status=status,
            succeeded=status == "SUCCESSFUL",
            amount=Decimal(str(payload.get("amount", request.amount))),
            currency=str(payload.get("currency", request.currency)),
            raw=payload,
        )
