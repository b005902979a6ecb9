"""Integration tests for the Celcoin HTTP client against a mocked transport"""

import json

import httpx
import pytest

from wallet_gateway.domain.exceptions import ProviderError
from wallet_gateway.domain.models import CardBrand, TokenizationPayload
from wallet_gateway.infrastructure.clients.celcoin import CelcoinClient, build_card_request


@pytest.fixture
def payload() -> TokenizationPayload:
    return TokenizationPayload(
        masked_pan="**** **** **** 6467",
        holder="MARIA SILVA",
        brand=CardBrand.VISA,
        device_fingerprint="f" * 64,
        expiry="12/28",
    )


def make_client(handler) -> CelcoinClient:
    return CelcoinClient(
        base_url="https://celcoin.test/cards/v1",
        api_key="test-key",
        account_id=7,
        customer_id=99,
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.integration
async def test_tokenize_creates_virtual_card(payload):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": 31337, "type": "VIRTUAL"})

    response = await make_client(handler).tokenize(payload)

    assert response.success is True
    assert response.token_id == "31337"
    assert response.device_token_id.startswith("VISA_DEV_")
    assert response.masked_pan == "**** **** **** 6467"
    assert captured["url"] == "https://celcoin.test/cards/v1/accounts/7/customers/99/card"
    assert captured["auth"] == "Bearer test-key"
    assert captured["body"]["printedName"] == "MARIA SILVA"
    assert captured["body"]["type"] == "VIRTUAL"
    assert captured["body"]["metadata"]["deviceFingerprint"] == "f" * 64


@pytest.mark.integration
async def test_tokenize_http_error_raises(payload):
    client = make_client(lambda request: httpx.Response(400, json={"errorCode": "CELCOIN_ERROR"}))

    with pytest.raises(ProviderError, match="400"):
        await client.tokenize(payload)


@pytest.mark.integration
async def test_tokenize_timeout_raises(payload):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(ProviderError, match="timeout"):
        await make_client(handler).tokenize(payload)


@pytest.mark.integration
async def test_tokenize_connection_error_raises(payload):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError, match="unreachable"):
        await make_client(handler).tokenize(payload)


@pytest.mark.integration
async def test_tokenize_malformed_body_raises(payload):
    client = make_client(lambda request: httpx.Response(200, json={"name": "no id"}))

    with pytest.raises(ProviderError, match="Invalid card data"):
        await client.tokenize(payload)


def test_card_request_body(payload):
    body = build_card_request(payload)

    assert body["name"] == "VISA Token - MARIA SILVA"
    assert body["cvvRotationIntervalHours"] == 24
    assert body["transactionLimit"] == 500_000
    assert body["modeType"] == "SINGLE"
    assert body["metadata"]["tokenizationMethod"] == "DEVICE_TOKENIZATION"
