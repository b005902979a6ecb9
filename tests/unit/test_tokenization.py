"""Unit tests for the tokenization orchestrator"""

import asyncio

import pytest
from unittest.mock import AsyncMock, Mock

from wallet_gateway.domain.exceptions import ProviderError
from wallet_gateway.domain.models import (
    RISK_ASSESSMENT,
    SECURITY_EVENT,
    TOKENIZATION_REQUEST,
    TOKENIZATION_RESPONSE,
    AuthenticationPath,
    CardInput,
    DeviceCapabilities,
    IssuerResponse,
    ProviderResponse,
    RiskSignals,
    TokenizationRequest,
    TokenizationStatus,
    VerificationChannel,
)
from wallet_gateway.domain.tokenization import TokenizationService, device_fingerprint
from wallet_gateway.domain.validation import StaticIssuer
from wallet_gateway.infrastructure.clients.device import StaticDeviceProbe
from wallet_gateway.infrastructure.clients.simulated import SimulatedVerificationProvider

from conftest import INVALID_VISA, SUPPORTED_BINS, VALID_VISA


def build_service(provider, log_sink, probe=None, timeout=1.0) -> TokenizationService:
    return TokenizationService(
        provider=provider,
        verifier=SimulatedVerificationProvider(),
        device_probe=probe or StaticDeviceProbe(DeviceCapabilities(True, True, True)),
        log_sink=log_sink,
        issuer=StaticIssuer(IssuerResponse.APPROVED),
        supported_bins=SUPPORTED_BINS,
        provider_timeout=timeout,
    )


async def test_high_trust_visa_is_tokenized(service, provider, visa_card, trusted_device):
    result = await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    assert result.success is True
    assert result.status == TokenizationStatus.SUCCESS
    assert result.token_id
    assert result.device_token_id
    assert result.risk.authentication_path == AuthenticationPath.GREEN
    assert result.risk.risk_score >= 70
    assert result.compliance.device_eligible is True
    assert result.compliance.succeeded is True
    assert result.processing_time_ms >= 0
    provider.tokenize.assert_awaited_once()


async def test_provider_payload_never_carries_full_pan(service, provider, visa_card, trusted_device):
    await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    payload = provider.tokenize.await_args.args[0]
    assert payload.masked_pan == "**** **** **** 6467"
    assert payload.holder == "MARIA SILVA"
    assert payload.brand.value == "visa"
    assert len(payload.device_fingerprint) == 64
    assert "4539148803436467" not in repr(payload)


async def test_luhn_failure_stops_at_validation(service, provider, trusted_device):
    card = CardInput(number=INVALID_VISA, holder="MARIA SILVA", expiry="12/28", cvv="123")

    result = await service.tokenize_card(TokenizationRequest(card=card, device=trusted_device))

    assert result.status == TokenizationStatus.FAILURE
    assert result.error_code == "VALIDATION_FAILED"
    assert "INVALID_FORMAT" in result.validation.error_codes
    assert result.risk is None
    assert result.compliance.device_eligible is False
    provider.tokenize.assert_not_awaited()


async def test_ineligible_device_is_rejected(provider, log_sink, visa_card, trusted_device):
    probe = StaticDeviceProbe(DeviceCapabilities(has_nfc=True, has_host_card_emulation=False, has_lock_screen=False))
    service = build_service(provider, log_sink, probe=probe)

    result = await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    assert result.error_code == "DEVICE_NOT_ELIGIBLE"
    assert "Host card emulation" in result.message
    assert "Lock screen" in result.message
    assert result.compliance.device_eligible is False
    assert log_sink.records(SECURITY_EVENT)
    provider.tokenize.assert_not_awaited()


async def test_red_tier_is_denied(service, provider, amex_card, untrusted_device):
    signals = RiskSignals(good_account_history=False, first_time_use=True, region="US", known_location=False)

    result = await service.tokenize_card(TokenizationRequest(card=amex_card, device=untrusted_device, signals=signals))

    assert result.status == TokenizationStatus.FAILURE
    assert result.error_code == "RISK_DENIED"
    assert result.risk.authentication_path == AuthenticationPath.RED
    assert result.message == result.risk.reason
    provider.tokenize.assert_not_awaited()


async def test_yellow_without_channel_stays_pending(service, provider, visa_card, untrusted_device, weak_signals):
    request = TokenizationRequest(card=visa_card, device=untrusted_device, signals=weak_signals)

    result = await service.tokenize_card(request)

    assert result.risk.authentication_path == AuthenticationPath.YELLOW
    assert result.status == TokenizationStatus.PENDING
    assert result.success is False
    assert result.error_code == "VERIFICATION_REQUIRED"
    provider.tokenize.assert_not_awaited()


async def test_yellow_issues_challenge_when_code_missing(service, provider, visa_card, untrusted_device, weak_signals):
    request = TokenizationRequest(
        card=visa_card,
        device=untrusted_device,
        signals=weak_signals,
        verification_channel=VerificationChannel.SMS_OTP,
        verification_destination="11987654321",
    )

    result = await service.tokenize_card(request)

    assert result.status == TokenizationStatus.PENDING
    assert result.error_code == "VERIFICATION_REQUIRED"
    assert result.otp_id.startswith("SMS_OTP_")
    provider.tokenize.assert_not_awaited()


async def test_yellow_with_wrong_code_is_not_tokenized(service, provider, visa_card, untrusted_device, weak_signals):
    request = TokenizationRequest(
        card=visa_card,
        device=untrusted_device,
        signals=weak_signals,
        verification_channel=VerificationChannel.SMS_OTP,
        verification_destination="11987654321",
        otp_code="999999",
    )

    result = await service.tokenize_card(request)

    assert result.status == TokenizationStatus.PENDING
    assert result.success is False
    assert result.error_code == "VERIFICATION_FAILED"
    provider.tokenize.assert_not_awaited()


async def test_yellow_with_valid_code_is_tokenized(service, provider, visa_card, untrusted_device, weak_signals):
    request = TokenizationRequest(
        card=visa_card,
        device=untrusted_device,
        signals=weak_signals,
        verification_channel=VerificationChannel.EMAIL_OTP,
        verification_destination="maria@example.com",
        otp_code="000000",
    )

    result = await service.tokenize_card(request)

    assert result.status == TokenizationStatus.SUCCESS
    provider.tokenize.assert_awaited_once()


async def test_yellow_with_bad_destination_fails_verification(service, provider, visa_card, untrusted_device, weak_signals):
    request = TokenizationRequest(
        card=visa_card,
        device=untrusted_device,
        signals=weak_signals,
        verification_channel=VerificationChannel.SMS_OTP,
        verification_destination="123",
        otp_code="000000",
    )

    result = await service.tokenize_card(request)

    assert result.status == TokenizationStatus.PENDING
    assert result.error_code == "VERIFICATION_FAILED"
    provider.tokenize.assert_not_awaited()


async def test_provider_decline_is_provider_error(service, provider, visa_card, trusted_device):
    provider.tokenize.return_value = ProviderResponse(
        success=False, error_code="CELCOIN_ERROR", message="Virtual card creation failed"
    )

    result = await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    assert result.status == TokenizationStatus.FAILURE
    assert result.error_code == "PROVIDER_ERROR"
    assert result.message == "Virtual card creation failed"
    assert result.compliance.device_eligible is True
    assert result.compliance.succeeded is False


async def test_provider_exception_is_provider_error(service, provider, visa_card, trusted_device):
    provider.tokenize.side_effect = ProviderError("Celcoin API error: 503")

    result = await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    assert result.error_code == "PROVIDER_ERROR"
    assert "503" in result.message


async def test_unexpected_provider_exception_is_provider_error(service, provider, log_sink, visa_card, trusted_device):
    provider.tokenize.side_effect = ConnectionResetError("peer reset")

    result = await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    assert result.status == TokenizationStatus.FAILURE
    assert result.error_code == "PROVIDER_ERROR"
    assert "peer reset" in result.message
    assert result.compliance.succeeded is False
    assert log_sink.records(TOKENIZATION_RESPONSE)[0].data["error_code"] == "PROVIDER_ERROR"


async def test_unexpected_verifier_exception_stays_pending(provider, log_sink, visa_card, untrusted_device, weak_signals):
    service = build_service(provider, log_sink)
    service.verifier = AsyncMock()
    service.verifier.initiate.side_effect = ConnectionResetError("sms gateway down")
    request = TokenizationRequest(
        card=visa_card,
        device=untrusted_device,
        signals=weak_signals,
        verification_channel=VerificationChannel.SMS_OTP,
        verification_destination="11987654321",
        otp_code="000000",
    )

    result = await service.tokenize_card(request)

    assert result.status == TokenizationStatus.PENDING
    assert result.error_code == "VERIFICATION_FAILED"
    assert "sms gateway down" in result.message
    provider.tokenize.assert_not_awaited()


async def test_non_ascii_digit_fails_validation(service, provider, trusted_device):
    card = CardInput(number="453914880343646²", holder="MARIA SILVA", expiry="12/28", cvv="123")

    result = await service.tokenize_card(TokenizationRequest(card=card, device=trusted_device))

    assert result.status == TokenizationStatus.FAILURE
    assert result.error_code == "VALIDATION_FAILED"
    provider.tokenize.assert_not_awaited()


async def test_provider_timeout_is_provider_error(log_sink, visa_card, trusted_device):
    async def slow_tokenize(payload):
        await asyncio.sleep(1)

    provider = AsyncMock()
    provider.tokenize.side_effect = slow_tokenize
    service = build_service(provider, log_sink, timeout=0.01)

    result = await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    assert result.error_code == "PROVIDER_ERROR"
    assert "timed out" in result.message


async def test_stage_records_are_logged(service, log_sink, visa_card, trusted_device):
    await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    categories = [r.category for r in log_sink.records()]
    assert categories == [
        TOKENIZATION_REQUEST,
        RISK_ASSESSMENT,
        TOKENIZATION_RESPONSE,
    ]
    response = log_sink.records(TOKENIZATION_RESPONSE)[0]
    assert response.data["success"] is True
    assert response.data["issuer_response"] == "APPROVED"


async def test_failing_log_sink_does_not_fail_attempt(provider, visa_card, trusted_device):
    broken_sink = Mock()
    broken_sink.append.side_effect = RuntimeError("sink unavailable")
    service = build_service(provider, broken_sink)

    result = await service.tokenize_card(TokenizationRequest(card=visa_card, device=trusted_device))

    assert result.status == TokenizationStatus.SUCCESS
    assert broken_sink.append.call_count == 3


def test_device_fingerprint_is_stable(trusted_device):
    caps = DeviceCapabilities(True, True, True)
    assert device_fingerprint(trusted_device, caps) == device_fingerprint(trusted_device, caps)
    assert device_fingerprint(trusted_device, caps) != device_fingerprint(
        trusted_device, DeviceCapabilities(True, False, True)
    )


@pytest.mark.parametrize("card_number", [VALID_VISA, VALID_VISA.replace(" ", "")])
async def test_spacing_does_not_change_outcome(service, trusted_device, card_number):
    card = CardInput(number=card_number, holder="MARIA SILVA", expiry="12/28", cvv="123")
    result = await service.tokenize_card(TokenizationRequest(card=card, device=trusted_device))
    assert result.status == TokenizationStatus.SUCCESS
