"""Pytest fixtures for testing"""

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from wallet_gateway.api.dependencies import get_device_probe, get_issuer, get_provider
from wallet_gateway.api.main import create_app
from wallet_gateway.domain.models import (
    CardInput,
    DeviceCapabilities,
    DeviceInfo,
    IssuerResponse,
    ProviderResponse,
    RiskSignals,
)
from wallet_gateway.domain.tokenization import TokenizationService
from wallet_gateway.domain.validation import StaticIssuer
from wallet_gateway.infrastructure.clients.device import StaticDeviceProbe
from wallet_gateway.infrastructure.clients.simulated import SimulatedVerificationProvider
from wallet_gateway.infrastructure.observability.compliance_log import ComplianceLogSink

SUPPORTED_BINS = ["453210", "453910", "555544", "378234", "601100", "506699"]

VALID_VISA = "4539 1488 0343 6467"
INVALID_VISA = "4539 1488 0343 6468"  # Luhn check digit off by one
VALID_MASTERCARD = "5555 5555 5555 4444"
VALID_AMEX = "3782 822463 10005"


@pytest.fixture
def visa_card() -> CardInput:
    return CardInput(number=VALID_VISA, holder="MARIA SILVA", expiry="12/28", cvv="123")


@pytest.fixture
def amex_card() -> CardInput:
    return CardInput(number=VALID_AMEX, holder="JOAO SOUZA", expiry="06/27", cvv="1234")


@pytest.fixture
def trusted_device() -> DeviceInfo:
    """Flagship phone: NFC, biometrics, high trust baseline"""
    return DeviceInfo(device_id="device-trusted", has_nfc=True, has_biometrics=True, risk_score=90)


@pytest.fixture
def untrusted_device() -> DeviceInfo:
    return DeviceInfo(device_id="device-untrusted", has_nfc=False, has_biometrics=False, risk_score=10)


@pytest.fixture
def weak_signals() -> RiskSignals:
    """First-time user with no account history bonus"""
    return RiskSignals(good_account_history=False, first_time_use=True)


@pytest.fixture
def provider() -> AsyncMock:
    """Tokenization provider that always succeeds"""
    mock = AsyncMock()
    mock.tokenize.return_value = ProviderResponse(
        success=True,
        token_id="48213",
        device_token_id="VISA_DEV_1700000000000_ABC123",
        masked_pan="**** **** **** 6467",
    )
    return mock


@pytest.fixture
def log_sink() -> ComplianceLogSink:
    return ComplianceLogSink(capacity=100)


@pytest.fixture
def eligible_probe() -> StaticDeviceProbe:
    return StaticDeviceProbe(DeviceCapabilities(has_nfc=True, has_host_card_emulation=True, has_lock_screen=True))


@pytest.fixture
def service(provider, log_sink, eligible_probe) -> TokenizationService:
    return TokenizationService(
        provider=provider,
        verifier=SimulatedVerificationProvider(),
        device_probe=eligible_probe,
        log_sink=log_sink,
        issuer=StaticIssuer(IssuerResponse.APPROVED),
        supported_bins=SUPPORTED_BINS,
        supported_country="BR",
        provider_timeout=1.0,
    )


@pytest.fixture
def client(provider, eligible_probe) -> TestClient:
    """Create FastAPI test client with a fake provider and deterministic issuer"""
    app = create_app()

    app.dependency_overrides[get_provider] = lambda: provider
    app.dependency_overrides[get_issuer] = lambda: StaticIssuer(IssuerResponse.APPROVED)
    app.dependency_overrides[get_device_probe] = lambda: eligible_probe
    return TestClient(app)
