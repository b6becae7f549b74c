"""Live-mode adapters against a mocked provider HTTP API."""

import json
from decimal import Decimal

import httpx
import pytest

from sankofa_payments.core.exceptions import (
    ProviderDeclinedError,
    ProviderResponseMismatch,
    ProviderTimeoutError,
    ProviderUnavailableError,
    TransientError,
)
from sankofa_payments.models import PaymentMethod, PaymentMethodKind
from sankofa_payments.providers import (
    MTN_PROVIDER_NAME,
    VODAFONE_PROVIDER_NAME,
    CardAdapter,
    ChargeContext,
    MTNMoMoAdapter,
    VodafoneCashAdapter,
)
from sankofa_payments.settings import CardGatewaySettings, MTNMoMoSettings, VodafoneCashSettings

MTN_URL = "https://momo.test/collection/v1_0/requesttopay"
VODAFONE_URL = "https://voda.test/payments"
CARD_URL = "https://cards.test/charges"


@pytest.fixture
def charge() -> ChargeContext:
    return ChargeContext(
        ride_id="ride-001",
        amount=Decimal("45.00"),
        currency="GHS",
        transaction_ref="RIDE_ride-001_1700000000000",
    )


@pytest.fixture
def live_mtn() -> MTNMoMoAdapter:
    return MTNMoMoAdapter(
        MTNMoMoSettings(
            base_url="https://momo.test/",
            api_key="token-123",
            subscription_key="sub-key",
            status_poll_interval_seconds=0.0,
        ),
        timeout=2.0,
    )


@pytest.fixture
def mtn_request(live_mtn, charge):
    method = PaymentMethod(
        id="pm-1",
        user_id="rider-1",
        kind=PaymentMethodKind.MOBILE_MONEY,
        provider=MTN_PROVIDER_NAME,
        account_details={"phone": "0241234567"},
    )
    return live_mtn.build_request(method, charge)


@pytest.mark.unit
class TestLiveMTNMoMo:
    async def test_successful_request_to_pay(self, respx_mock, live_mtn, mtn_request):
        route = respx_mock.post(MTN_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "financialTransactionId": "9876543",
                    "externalId": "RIDE_ride-001_1700000000000",
                    "amount": "45.00",
                    "currency": "GHS",
                    "status": "SUCCESSFUL",
                },
            )
        )

        result = await live_mtn.process(mtn_request)

        assert result.succeeded is True
        assert result.provider_transaction_id == "9876543"
        sent = route.calls.last.request
        assert sent.headers["Authorization"] == "Bearer token-123"
        assert sent.headers["Ocp-Apim-Subscription-Key"] == "sub-key"
        assert sent.headers["X-Target-Environment"] == "sandbox"
        body = json.loads(sent.content)
        assert body["payer"] == {"partyIdType": "MSISDN", "partyId": "0241234567"}
        assert body["externalId"] == "RIDE_ride-001_1700000000000"

    async def test_failed_status_is_declined(self, respx_mock, live_mtn, mtn_request):
        respx_mock.post(MTN_URL).mock(
            return_value=httpx.Response(200, json={"financialTransactionId": "1", "status": "FAILED"})
        )

        with pytest.raises(ProviderDeclinedError) as exc_info:
            await live_mtn.process(mtn_request)

        assert exc_info.value.details["status"] == "FAILED"

    async def test_server_error_is_transient(self, respx_mock, live_mtn, mtn_request):
        respx_mock.post(MTN_URL).mock(return_value=httpx.Response(503))

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await live_mtn.process(mtn_request)

        assert isinstance(exc_info.value, TransientError)
        assert exc_info.value.details["status_code"] == 503

    async def test_client_error_is_declined(self, respx_mock, live_mtn, mtn_request):
        respx_mock.post(MTN_URL).mock(return_value=httpx.Response(400, json={"code": "PAYER_NOT_FOUND"}))

        with pytest.raises(ProviderDeclinedError):
            await live_mtn.process(mtn_request)

    async def test_timeout_maps_to_provider_timeout(self, respx_mock, live_mtn, mtn_request):
        respx_mock.post(MTN_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(ProviderTimeoutError):
            await live_mtn.process(mtn_request)

    async def test_connection_error_is_unavailable(self, respx_mock, live_mtn, mtn_request):
        respx_mock.post(MTN_URL).mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ProviderUnavailableError):
            await live_mtn.process(mtn_request)

    async def test_non_json_body_is_unavailable(self, respx_mock, live_mtn, mtn_request):
        respx_mock.post(MTN_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(ProviderUnavailableError):
            await live_mtn.process(mtn_request)


@pytest.mark.unit
class TestLiveVodafoneAndCard:
    async def test_vodafone_success(self, respx_mock, charge):
        adapter = VodafoneCashAdapter(VodafoneCashSettings(base_url="https://voda.test"))
        method = PaymentMethod(
            id="pm-2",
            user_id="rider-1",
            kind=PaymentMethodKind.MOBILE_MONEY,
            provider=VODAFONE_PROVIDER_NAME,
            account_details={"phone": "0201234567"},
        )
        route = respx_mock.post(VODAFONE_URL).mock(
            return_value=httpx.Response(
                200, json={"transactionId": "V-1", "amount": 45.0, "currency": "GHS", "status": "SUCCESS"}
            )
        )

        result = await adapter.process(adapter.build_request(method, charge))

        assert result.provider_transaction_id == "V-1"
        assert "Authorization" not in route.calls.last.request.headers
        assert json.loads(route.calls.last.request.content)["phone"] == "0201234567"

    async def test_card_declined(self, respx_mock, charge, card_details):
        adapter = CardAdapter(CardGatewaySettings(base_url="https://cards.test"))
        method = PaymentMethod(
            id="pm-3",
            user_id="rider-1",
            kind=PaymentMethodKind.BANK_CARD,
            provider="GCB",
            account_details=card_details,
        )
        respx_mock.post(CARD_URL).mock(
            return_value=httpx.Response(200, json={"transactionId": "C-1", "status": "failed"})
        )

        with pytest.raises(ProviderDeclinedError):
            await adapter.process(adapter.build_request(method, charge))

    async def test_card_charge_sends_reference_as_idempotency_key(
        self, respx_mock, charge, card_details
    ):
        adapter = CardAdapter(CardGatewaySettings(base_url="https://cards.test"))
        method = PaymentMethod(
            id="pm-3",
            user_id="rider-1",
            kind=PaymentMethodKind.CREDIT_CARD,
            provider="Visa",
            account_details=card_details,
        )
        route = respx_mock.post(CARD_URL).mock(
            return_value=httpx.Response(
                200,
                json={"transactionId": "C-2", "amount": 45.0, "currency": "GHS", "status": "success"},
            )
        )

        await adapter.process(adapter.build_request(method, charge))

        sent = route.calls.last.request
        assert sent.headers["Idempotency-Key"] == "RIDE_ride-001_1700000000000"
        assert json.loads(sent.content)["reference"] == "RIDE_ride-001_1700000000000"


@pytest.mark.unit
class TestConfirmedAmount:
    @pytest.mark.parametrize(
        "confirmed",
        [
            {"amount": "4.50", "currency": "GHS"},
            {"amount": "45.00", "currency": "USD"},
        ],
    )
    async def test_mismatched_confirmation_is_rejected(
        self, respx_mock, live_mtn, mtn_request, confirmed
    ):
        respx_mock.post(MTN_URL).mock(
            return_value=httpx.Response(
                200, json={"financialTransactionId": "9", "status": "SUCCESSFUL", **confirmed}
            )
        )

        with pytest.raises(ProviderResponseMismatch) as exc_info:
            await live_mtn.process(mtn_request)

        assert not isinstance(exc_info.value, TransientError)
        assert exc_info.value.details["provider_transaction_id"] == "9"

    async def test_equal_amount_with_other_scale_is_accepted(self, respx_mock, charge):
        adapter = VodafoneCashAdapter(VodafoneCashSettings(base_url="https://voda.test"))
        method = PaymentMethod(
            id="pm-2",
            user_id="rider-1",
            kind=PaymentMethodKind.MOBILE_MONEY,
            provider=VODAFONE_PROVIDER_NAME,
            account_details={"phone": "0201234567"},
        )
        respx_mock.post(VODAFONE_URL).mock(
            return_value=httpx.Response(
                200, json={"transactionId": "V-2", "amount": 45, "currency": "ghs", "status": "SUCCESS"}
            )
        )

        result = await adapter.process(adapter.build_request(method, charge))

        assert result.succeeded is True


@pytest.mark.unit
class TestMTNRequestToPayPolling:
    def status_url(self, live_mtn, mtn_request) -> str:
        return f"{MTN_URL}/{live_mtn.reference_id(mtn_request)}"

    def status_body(self, status: str) -> dict:
        return {
            "financialTransactionId": "55501",
            "externalId": "RIDE_ride-001_1700000000000",
            "amount": "45.00",
            "currency": "GHS",
            "status": status,
        }

    async def test_accepted_request_is_resolved_by_status_check(
        self, respx_mock, live_mtn, mtn_request
    ):
        respx_mock.post(MTN_URL).mock(return_value=httpx.Response(202))
        status = respx_mock.get(self.status_url(live_mtn, mtn_request)).mock(
            return_value=httpx.Response(200, json=self.status_body("SUCCESSFUL"))
        )

        result = await live_mtn.process(mtn_request)

        assert result.succeeded is True
        assert result.provider_transaction_id == "55501"
        assert status.call_count == 1
        assert status.calls.last.request.headers["X-Target-Environment"] == "sandbox"

    async def test_pending_status_is_polled_until_final(self, respx_mock, live_mtn, mtn_request):
        respx_mock.post(MTN_URL).mock(return_value=httpx.Response(202))
        status = respx_mock.get(self.status_url(live_mtn, mtn_request)).mock(
            side_effect=[
                httpx.Response(200, json=self.status_body("PENDING")),
                httpx.Response(200, json=self.status_body("PENDING")),
                httpx.Response(200, json=self.status_body("SUCCESSFUL")),
            ]
        )

        result = await live_mtn.process(mtn_request)

        assert result.succeeded is True
        assert status.call_count == 3

    async def test_resubmitted_reference_reads_existing_outcome(
        self, respx_mock, live_mtn, mtn_request
    ):
        respx_mock.post(MTN_URL).mock(return_value=httpx.Response(409))
        respx_mock.get(self.status_url(live_mtn, mtn_request)).mock(
            return_value=httpx.Response(200, json=self.status_body("SUCCESSFUL"))
        )

        result = await live_mtn.process(mtn_request)

        assert result.provider_transaction_id == "55501"

    async def test_failed_status_after_acceptance_is_declined(
        self, respx_mock, live_mtn, mtn_request
    ):
        respx_mock.post(MTN_URL).mock(return_value=httpx.Response(202))
        respx_mock.get(self.status_url(live_mtn, mtn_request)).mock(
            return_value=httpx.Response(200, json=self.status_body("FAILED"))
        )

        with pytest.raises(ProviderDeclinedError):
            await live_mtn.process(mtn_request)

    async def test_still_pending_after_all_checks_is_transient(
        self, respx_mock, live_mtn, mtn_request
    ):
        respx_mock.post(MTN_URL).mock(return_value=httpx.Response(202))
        status = respx_mock.get(self.status_url(live_mtn, mtn_request)).mock(
            return_value=httpx.Response(200, json=self.status_body("PENDING"))
        )

        with pytest.raises(ProviderTimeoutError):
            await live_mtn.process(mtn_request)

        assert status.call_count == live_mtn.settings.status_poll_attempts
