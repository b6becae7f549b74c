"""
Abstract payment provider adapter.

Every adapter turns a stored payment method plus a charge into the
provider's own request shape, sends it, and normalizes whatever comes back
into a ProviderResult. Without a configured base URL an adapter runs in
sandbox mode: the round trip is simulated locally and always succeeds.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, ClassVar, Generic, TypeVar

import httpx
from pydantic import BaseModel, SecretStr

from ..core.exceptions import (
    ProviderDeclinedError,
    ProviderResponseMismatch,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from ..models import PaymentMethod, PaymentMethodKind
from ..settings import ProviderSettings

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)


class ChargeContext(BaseModel):
    """What is being paid for, independent of the provider."""

    ride_id: str
    amount: Decimal
    currency: str
    transaction_ref: str
    payee_note: str = "Sankofa Ride payment"
    # Card security code for this charge only; never stored
    card_security_code: SecretStr | None = None

    @property
    def description(self) -> str:
        return f"Payment for ride {self.ride_id}"


class ProviderResult(BaseModel):
    """Provider response normalized across rails."""

    provider: str
    provider_transaction_id: str
    status: str
    succeeded: bool
    amount: Decimal
    currency: str
    raw: dict[str, Any]


def epoch_millis() -> int:
    return int(time.time() * 1000)


class ProviderAdapter(ABC, Generic[RequestT]):
    """Base class for payment provider adapters."""

    name: ClassVar[str]
    kinds: ClassVar[frozenset[PaymentMethodKind]]
    # Provider names this adapter serves; None matches any provider of its kinds
    provider_names: ClassVar[tuple[str, ...] | None] = None
    endpoint: ClassVar[str]

    def __init__(self, settings: ProviderSettings, timeout: float = 10.0):
        self.settings = settings
        self.timeout = timeout

    @abstractmethod
    def build_request(self, method: PaymentMethod, charge: ChargeContext) -> RequestT:
        """Build the provider request from stored account details.

        Raises:
            IncompletePaymentMethod: When a required account field is missing.
        """
        ...

    @abstractmethod
    def to_payload(self, request: RequestT) -> dict[str, Any]:
        """Wire payload for the provider API."""
        ...

    @abstractmethod
    def simulate(self, request: RequestT) -> dict[str, Any]:
        """Sandbox response in the provider's own shape."""
        ...

    @abstractmethod
    def parse_response(self, request: RequestT, payload: dict[str, Any]) -> ProviderResult:
        ...

    def describe(self, request: RequestT) -> dict[str, Any]:
        """Loggable view of the request."""
        return self.to_payload(request)

    def headers(self, request: RequestT) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    async def process(self, request: RequestT) -> ProviderResult:
        """Send the request and return the normalized result.

        Requests carry ``amount`` and ``currency``; a provider that confirms
        different values is rejected rather than recorded.

        Raises:
            ProviderTimeoutError: Provider did not answer in time (retryable).
            ProviderUnavailableError: Transport failure or 5xx (retryable).
            ProviderDeclinedError: Provider answered and refused the payment.
            ProviderResponseMismatch: Provider confirmed another amount or currency.
        """
        logger.info(f"Processing {self.name} payment: {self.describe(request)}")

        if self.settings.live:
            payload = await self._post(request)
        else:
            await asyncio.sleep(self.settings.simulated_latency_seconds)
            payload = self.simulate(request)

        result = self.parse_response(request, payload)
        if not result.succeeded:
            raise ProviderDeclinedError(
                f"{self.name} declined the payment (status {result.status})",
                details={"provider": self.name, "status": result.status},
            )
        self._check_confirmed(request, result)

        logger.info(f"{self.name} payment succeeded: {result.provider_transaction_id}")
        return result

    def _check_confirmed(self, request: RequestT, result: ProviderResult) -> None:
        expected_amount = Decimal(str(request.amount))
        expected_currency = request.currency
        if result.amount != expected_amount or result.currency.upper() != expected_currency:
            raise ProviderResponseMismatch(
                f"{self.name} confirmed {result.amount} {result.currency}, "
                f"expected {expected_amount} {expected_currency}",
                details={
                    "provider": self.name,
                    "provider_transaction_id": result.provider_transaction_id,
                },
            )

    async def _post(self, request: RequestT) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await self._send(
                client,
                "POST",
                f"{self.settings.base_url}{self.endpoint}",
                json=self.to_payload(request),
                headers=self.headers(request),
            )
        return self._json(response)

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        accept: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        """Issue one HTTP call, mapping transport and status failures.

        Status codes listed in ``accept`` are returned as-is even when they
        would otherwise count as failures.
        """
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"{self.name} timed out after {self.timeout}s", details={"provider": self.name}
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(
                f"{self.name} unreachable: {e}", details={"provider": self.name}
            ) from e

        if response.status_code in accept:
            return response
        if response.status_code >= 500:
            raise ProviderUnavailableError(
                f"{self.name} server error: {response.status_code}",
                details={"provider": self.name, "status_code": response.status_code},
            )
        if response.status_code >= 400:
            raise ProviderDeclinedError(
                f"{self.name} rejected the request: {response.status_code}",
                details={"provider": self.name, "status_code": response.status_code},
            )
        return response

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderUnavailableError(
                f"{self.name} returned an unreadable response", details={"provider": self.name}
            ) from e
        if not isinstance(data, dict):
            raise ProviderUnavailableError(
                f"{self.name} returned an unexpected response", details={"provider": self.name}
            )
        return data
