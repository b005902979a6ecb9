"""Pydantic schemas for API request/response validation"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from wallet_gateway.domain.models import (
    AuthenticationPath,
    CardBrand,
    CardInput,
    DeviceInfo,
    IssuerResponse,
    RiskAssessment,
    RiskSignals,
    TokenizationRequest,
    TokenizationResult,
    TokenizationStatus,
    ValidationResult,
    VerificationChannel,
)


class CardSchema(BaseModel):
    """Card data as typed by the user"""

    number: str = Field(..., min_length=1, description="PAN, spaces allowed")
    holder: str = ""
    expiry: str = Field("", description="MM/YY")
    cvv: str = ""
    brand: Optional[CardBrand] = None

    def to_domain(self) -> CardInput:
        return CardInput(number=self.number, holder=self.holder, expiry=self.expiry, cvv=self.cvv, brand=self.brand)


class DeviceSchema(BaseModel):
    device_id: str = Field(..., min_length=1)
    has_nfc: bool
    has_biometrics: bool
    risk_score: int = Field(..., ge=0, le=100, description="Device trust baseline")

    def to_domain(self) -> DeviceInfo:
        return DeviceInfo(
            device_id=self.device_id,
            has_nfc=self.has_nfc,
            has_biometrics=self.has_biometrics,
            risk_score=self.risk_score,
        )


class SignalsSchema(BaseModel):
    good_account_history: bool = True
    first_time_use: bool = False
    region: str = "BR"
    known_location: bool = True

    def to_domain(self) -> RiskSignals:
        return RiskSignals(**self.model_dump())


class ValidateRequest(BaseModel):
    """Request body for POST /v1/validate"""

    card: CardSchema


class RiskRequest(BaseModel):
    """Request body for POST /v1/risk"""

    card: CardSchema
    device: DeviceSchema
    signals: SignalsSchema = Field(default_factory=SignalsSchema)


class TokenizeRequest(BaseModel):
    """Request body for POST /v1/tokenize"""

    card: CardSchema
    device: DeviceSchema
    signals: SignalsSchema = Field(default_factory=SignalsSchema)
    verification_channel: Optional[VerificationChannel] = None
    verification_destination: Optional[str] = None
    otp_code: Optional[str] = None

    def to_domain(self) -> TokenizationRequest:
        return TokenizationRequest(
            card=self.card.to_domain(),
            device=self.device.to_domain(),
            signals=self.signals.to_domain(),
            verification_channel=self.verification_channel,
            verification_destination=self.verification_destination,
            otp_code=self.otp_code,
        )


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: List[str]
    error_codes: List[str]
    issuer_response: IssuerResponse
    masked_pan: str

    @classmethod
    def from_domain(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(
            is_valid=result.is_valid,
            errors=result.errors,
            error_codes=result.error_codes,
            issuer_response=result.issuer_response,
            masked_pan=result.masked_pan,
        )


class RiskResponse(BaseModel):
    risk_score: int
    authentication_path: AuthenticationPath
    reason: str
    breakdown: Dict[str, int]

    @classmethod
    def from_domain(cls, assessment: RiskAssessment) -> "RiskResponse":
        b = assessment.breakdown
        return cls(
            risk_score=assessment.risk_score,
            authentication_path=assessment.authentication_path,
            reason=assessment.reason,
            breakdown={"device": b.device, "account": b.account, "geolocation": b.geolocation, "card": b.card},
        )


class ComplianceSchema(BaseModel):
    attempted: bool
    device_eligible: bool
    compliant: bool
    succeeded: bool


class TokenizeResponse(BaseModel):
    """Response for POST /v1/tokenize"""

    success: bool
    status: TokenizationStatus
    token_id: Optional[str] = None
    device_token_id: Optional[str] = None
    masked_pan: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    otp_id: Optional[str] = None
    processing_time_ms: float
    risk: Optional[RiskResponse] = None
    compliance: ComplianceSchema

    @classmethod
    def from_domain(cls, result: TokenizationResult) -> "TokenizeResponse":
        c = result.compliance
        return cls(
            success=result.success,
            status=result.status,
            token_id=result.token_id,
            device_token_id=result.device_token_id,
            masked_pan=result.masked_pan,
            error_code=result.error_code,
            message=result.message,
            otp_id=result.otp_id,
            processing_time_ms=result.processing_time_ms,
            risk=RiskResponse.from_domain(result.risk) if result.risk else None,
            compliance=ComplianceSchema(
                attempted=c.attempted,
                device_eligible=c.device_eligible,
                compliant=c.compliant,
                succeeded=c.succeeded,
            ),
        )


class ComplianceMetricsResponse(BaseModel):
    """Response for GET /v1/compliance/metrics"""

    tokenization_success_rate: float
    total_tokenizations: int
    successful_tokenizations: int
    failed_tokenizations: int
    risk_distribution: Dict[str, int]
    compliant: bool
    issues: List[str]
