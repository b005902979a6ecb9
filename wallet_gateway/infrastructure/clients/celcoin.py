"""Celcoin cards API HTTP client for device tokenization"""

import random
import string
import time
from typing import Any, Dict, Optional

import httpx

from wallet_gateway.config import settings
from wallet_gateway.domain.exceptions import ProviderError
from wallet_gateway.domain.models import ProviderResponse, TokenizationPayload
from wallet_gateway.infrastructure.observability.metrics import provider_latency_histogram

TRANSACTION_LIMIT_CENTS = 500_000  # R$ 5.000,00
CVV_ROTATION_HOURS = 24


def generate_device_token(rng: Optional[random.Random] = None) -> str:
    """Device-bound token id, e.g. VISA_DEV_1718000000000_K3Q9ZP"""
    rng = rng or random.Random()
    suffix = "".join(rng.choices(string.ascii_uppercase + string.digits, k=6))
    return f"VISA_DEV_{int(time.time() * 1000)}_{suffix}"


def build_card_request(payload: TokenizationPayload) -> Dict[str, Any]:
    """Celcoin virtual-card body for a device token"""
    return {
        "name": f"VISA Token - {payload.holder}",
        "printedName": payload.holder,
        "type": "VIRTUAL",
        "cvvRotationIntervalHours": CVV_ROTATION_HOURS,
        "transactionLimit": TRANSACTION_LIMIT_CENTS,
        "contactlessEnabled": True,
        "modeType": "SINGLE",
        "metadata": {
            "visaTokenization": True,
            "deviceFingerprint": payload.device_fingerprint,
            "tokenizationMethod": "DEVICE_TOKENIZATION",
        },
    }


class CelcoinClient:
    """Client for the Celcoin virtual card endpoint"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        account_id: int | None = None,
        customer_id: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.celcoin_api_base
        self.api_key = api_key or settings.celcoin_api_key
        self.account_id = account_id or settings.celcoin_account_id
        self.customer_id = customer_id or settings.celcoin_customer_id
        self.timeout = timeout or settings.provider_timeout_seconds
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def tokenize(self, payload: TokenizationPayload) -> ProviderResponse:
        """
        Create a virtual tokenized card for the device.

        Raises:
            ProviderError: On timeout, HTTP errors, or invalid response
        """
        url = f"{self.base_url}/accounts/{self.account_id}/customers/{self.customer_id}/card"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with provider_latency_histogram.time():
                    response = await client.post(url, json=build_card_request(payload), headers=self._headers())
                response.raise_for_status()
                data = response.json()

                return ProviderResponse(
                    success=True,
                    token_id=str(data["id"]),
                    device_token_id=generate_device_token(),
                    masked_pan=payload.masked_pan,
                )

            except httpx.TimeoutException as e:
                raise ProviderError(f"Celcoin API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ProviderError(f"Celcoin API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ProviderError(f"Celcoin API unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise ProviderError(f"Invalid card data from Celcoin: {e}") from e
