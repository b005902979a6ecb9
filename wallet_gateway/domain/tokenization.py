"""
Tokenization orchestrator.

Flow (linear, no retries):
1. Validate card data (Luhn, BIN allow-list, field format)
2. Check device eligibility (NFC, host card emulation, lock screen)
3. Evaluate risk; RED stops here
4. YELLOW requires a verified OTP before going further
5. Call the tokenization provider under a timeout

Every attempt ends in a TokenizationResult; collaborator errors never escape.
"""

import asyncio
import hashlib
import logging
import time
from typing import List, Optional, Protocol

from wallet_gateway.domain.exceptions import (
    DeviceNotEligibleError,
    DomainException,
    ProviderError,
    RiskDeniedError,
    ValidationError,
    VerificationError,
)
from wallet_gateway.domain.models import (
    RISK_ASSESSMENT,
    SECURITY_EVENT,
    TOKENIZATION_REQUEST,
    TOKENIZATION_RESPONSE,
    VERIFICATION,
    AuthenticationPath,
    ComplianceData,
    DeviceCapabilities,
    DeviceInfo,
    LogRecord,
    OtpChallenge,
    OtpVerification,
    ProviderResponse,
    RiskAssessment,
    TokenizationPayload,
    TokenizationRequest,
    TokenizationResult,
    TokenizationStatus,
    ValidationResult,
    VerificationChannel,
)
from wallet_gateway.domain.scoring import evaluate_risk
from wallet_gateway.domain.validation import (
    IssuerSimulator,
    clean_number,
    resolve_brand,
    validate_for_tokenization,
)

logger = logging.getLogger(__name__)

VERIFICATION_REQUIRED = "VERIFICATION_REQUIRED"


class TokenizationProvider(Protocol):
    async def tokenize(self, payload: TokenizationPayload) -> ProviderResponse: ...


class VerificationProvider(Protocol):
    async def initiate(self, channel: VerificationChannel, destination: str) -> OtpChallenge: ...

    async def verify(self, otp_id: str, code: str) -> OtpVerification: ...


class DeviceCapabilityProbe(Protocol):
    def capabilities(self, device: DeviceInfo) -> DeviceCapabilities: ...


class LogSink(Protocol):
    def append(self, record: LogRecord) -> None: ...


def device_fingerprint(device: DeviceInfo, capabilities: DeviceCapabilities) -> str:
    """Stable identifier for the device/capability combination (not a security control)"""
    material = "|".join(
        [
            device.device_id,
            str(capabilities.has_nfc),
            str(capabilities.has_host_card_emulation),
            str(capabilities.has_lock_screen),
        ]
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def check_device_eligibility(capabilities: DeviceCapabilities) -> None:
    missing: List[str] = []
    if not capabilities.has_nfc:
        missing.append("NFC not available")
    if not capabilities.has_host_card_emulation:
        missing.append("Host card emulation not supported")
    if not capabilities.has_lock_screen:
        missing.append("Lock screen not configured")
    if missing:
        raise DeviceNotEligibleError("Device not eligible: " + ", ".join(missing))


class TokenizationService:
    """Runs one tokenization attempt per call; holds no per-attempt state"""

    def __init__(
        self,
        provider: TokenizationProvider,
        verifier: VerificationProvider,
        device_probe: DeviceCapabilityProbe,
        log_sink: LogSink,
        issuer: IssuerSimulator,
        supported_bins: List[str],
        supported_country: str = "BR",
        provider_timeout: Optional[float] = 5.0,
    ):
        self.provider = provider
        self.verifier = verifier
        self.device_probe = device_probe
        self.log_sink = log_sink
        self.issuer = issuer
        self.supported_bins = supported_bins
        self.supported_country = supported_country
        self.provider_timeout = provider_timeout

    def _emit(self, category: str, message: str, level: str = "INFO", **data) -> None:
        # Logging must never fail the attempt
        try:
            self.log_sink.append(LogRecord.new(category, message, data, level))
        except Exception:
            logger.warning("Log sink rejected record", extra={"category": category}, exc_info=True)

    def validate(self, request: TokenizationRequest) -> ValidationResult:
        return validate_for_tokenization(request.card, self.supported_bins, self.issuer)

    def assess(self, request: TokenizationRequest) -> RiskAssessment:
        assessment = evaluate_risk(request.card, request.device, request.signals, self.supported_country)
        self._emit(
            RISK_ASSESSMENT,
            "Risk assessment completed",
            risk_score=assessment.risk_score,
            authentication_path=assessment.authentication_path.value,
            device_risk=assessment.breakdown.device,
            account_risk=assessment.breakdown.account,
            geolocation_risk=assessment.breakdown.geolocation,
            card_risk=assessment.breakdown.card,
            reason=assessment.reason,
        )
        return assessment

    async def tokenize_card(self, request: TokenizationRequest) -> TokenizationResult:
        start_time = time.perf_counter()
        compliance = ComplianceData(attempted=True)
        validation: Optional[ValidationResult] = None
        risk: Optional[RiskAssessment] = None
        card = request.card

        self._emit(
            TOKENIZATION_REQUEST,
            "Tokenization request initiated",
            device_id=request.device.device_id,
            issuer_bin=clean_number(card.number)[:6],
            card_brand=resolve_brand(card).value,
        )

        def finish(status: TokenizationStatus, **fields) -> TokenizationResult:
            result = TokenizationResult(
                success=status == TokenizationStatus.SUCCESS,
                status=status,
                compliance=compliance,
                processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
                risk=risk,
                validation=validation,
                **fields,
            )
            self._emit(
                TOKENIZATION_RESPONSE,
                f"Tokenization {status.value.lower()}",
                level="INFO" if result.success else "ERROR",
                success=result.success,
                status=status.value,
                token_id=result.token_id,
                error_code=result.error_code,
                processing_time_ms=result.processing_time_ms,
                issuer_response=validation.issuer_response.value if validation else None,
                verification_method=request.verification_channel.value if request.verification_channel else None,
            )
            return result

        # 1. Validate
        validation = self.validate(request)
        if not validation.is_valid:
            return finish(
                TokenizationStatus.FAILURE,
                error_code=ValidationError.code,
                message=", ".join(validation.errors),
            )

        # 2. Device eligibility
        capabilities = self.device_probe.capabilities(request.device)
        try:
            check_device_eligibility(capabilities)
        except DeviceNotEligibleError as e:
            self._emit(SECURITY_EVENT, str(e), level="WARN", device_id=request.device.device_id)
            return finish(TokenizationStatus.FAILURE, error_code=e.code, message=str(e))
        compliance.device_eligible = True

        # 3. Risk
        risk = self.assess(request)
        if risk.authentication_path == AuthenticationPath.RED:
            return finish(TokenizationStatus.FAILURE, error_code=RiskDeniedError.code, message=risk.reason)

        # 4. Step-up verification for YELLOW
        if risk.authentication_path == AuthenticationPath.YELLOW:
            pending = await self._verify(request)
            if pending is not None:
                otp_id, error_code, message = pending
                return finish(TokenizationStatus.PENDING, error_code=error_code, message=message, otp_id=otp_id)

        # 5. Provider call
        payload = TokenizationPayload(
            masked_pan=validation.masked_pan,
            holder=card.holder,
            brand=resolve_brand(card),
            device_fingerprint=device_fingerprint(request.device, capabilities),
            expiry=card.expiry,
        )
        try:
            response = await asyncio.wait_for(self.provider.tokenize(payload), timeout=self.provider_timeout)
            if not response.success:
                raise ProviderError(response.message or f"Provider declined: {response.error_code}")
        except asyncio.TimeoutError:
            return finish(
                TokenizationStatus.FAILURE,
                error_code=ProviderError.code,
                message=f"Provider timed out after {self.provider_timeout}s",
            )
        except ProviderError as e:
            return finish(TokenizationStatus.FAILURE, error_code=e.code, message=str(e))
        except Exception as e:
            logger.exception("Unexpected provider failure", extra={"device_id": request.device.device_id})
            return finish(
                TokenizationStatus.FAILURE,
                error_code=ProviderError.code,
                message=f"Provider call failed: {e}",
            )

        compliance.compliant = True
        compliance.succeeded = True
        return finish(
            TokenizationStatus.SUCCESS,
            token_id=response.token_id,
            device_token_id=response.device_token_id,
            masked_pan=response.masked_pan or payload.masked_pan,
        )

    async def _verify(self, request: TokenizationRequest) -> Optional[tuple]:
        """
        Run the OTP step for a YELLOW attempt.

        Returns None once the code is verified, otherwise
        (otp_id, error_code, message) describing why the attempt stays pending.
        """
        if request.verification_channel is None or not request.verification_destination:
            return None, VERIFICATION_REQUIRED, "Additional verification required: choose a channel and destination"

        try:
            challenge = await self.verifier.initiate(request.verification_channel, request.verification_destination)
            self._emit(
                VERIFICATION,
                "Verification challenge issued",
                otp_id=challenge.otp_id,
                channel=request.verification_channel.value,
                expires_in=challenge.expires_in,
            )
            if not request.otp_code:
                return challenge.otp_id, VERIFICATION_REQUIRED, "Verification code sent"

            outcome = await self.verifier.verify(challenge.otp_id, request.otp_code)
        except DomainException as e:
            return None, VerificationError.code, str(e)
        except Exception as e:
            logger.exception("Unexpected verifier failure", extra={"device_id": request.device.device_id})
            return None, VerificationError.code, f"Verification failed: {e}"

        self._emit(
            VERIFICATION,
            "Verification checked",
            level="INFO" if outcome.is_valid else "WARN",
            otp_id=challenge.otp_id,
            is_valid=outcome.is_valid,
            remaining_attempts=outcome.remaining_attempts,
        )
        if not outcome.is_valid:
            return challenge.otp_id, VerificationError.code, outcome.message or "Verification failed"
        return None
