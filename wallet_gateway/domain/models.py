"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class CardBrand(str, Enum):
    VISA = "visa"
    MASTERCARD = "mastercard"
    AMEX = "amex"
    DISCOVER = "discover"
    ELO = "elo"
    UNKNOWN = "unknown"


class AuthenticationPath(str, Enum):
    """Risk tier controlling how tokenization proceeds"""

    GREEN = "GREEN"  # automatic approval
    YELLOW = "YELLOW"  # additional verification required
    RED = "RED"  # denied


class IssuerResponse(str, Enum):
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"
    REQUIRES_VERIFICATION = "REQUIRES_VERIFICATION"


class TokenizationStatus(str, Enum):
    SUCCESS = "SUCCESS"
    PENDING = "PENDING"
    FAILURE = "FAILURE"


class VerificationChannel(str, Enum):
    SMS_OTP = "SMS_OTP"
    EMAIL_OTP = "EMAIL_OTP"
    APP_TO_APP = "APP_TO_APP"


@dataclass
class CardInput:
    """Card data supplied per request, never persisted"""

    number: str
    holder: str
    expiry: str  # MM/YY
    cvv: str
    brand: Optional[CardBrand] = None  # detected from number when omitted


@dataclass
class DeviceInfo:
    """Device trust inputs used by risk scoring"""

    device_id: str
    has_nfc: bool
    has_biometrics: bool
    risk_score: int  # 0-100 trust baseline


@dataclass
class DeviceCapabilities:
    """Capabilities reported by the device probe"""

    has_nfc: bool
    has_host_card_emulation: bool
    has_lock_screen: bool
    trust_score: int = 0


@dataclass
class RiskSignals:
    """External account/location signals feeding risk scoring"""

    good_account_history: bool = True
    first_time_use: bool = False
    region: str = "BR"
    known_location: bool = True


@dataclass
class RiskBreakdown:
    device: int
    account: int
    geolocation: int
    card: int


@dataclass
class RiskAssessment:
    """Output of risk evaluation"""

    risk_score: int
    authentication_path: AuthenticationPath
    reason: str
    breakdown: RiskBreakdown


@dataclass
class ValidationFailure:
    code: str
    message: str


@dataclass
class ValidationResult:
    """Output of card validation, errors kept in check order"""

    is_valid: bool
    errors: List[str]
    issuer_response: IssuerResponse
    failures: List[ValidationFailure] = field(default_factory=list)
    masked_pan: str = ""

    @property
    def error_codes(self) -> List[str]:
        return [f.code for f in self.failures]


@dataclass
class ComplianceData:
    attempted: bool = True
    device_eligible: bool = False
    compliant: bool = False
    succeeded: bool = False


@dataclass
class TokenizationPayload:
    """Normalized provider input; the full PAN is never included"""

    masked_pan: str
    holder: str
    brand: CardBrand
    device_fingerprint: str
    expiry: str


@dataclass
class ProviderResponse:
    success: bool
    token_id: Optional[str] = None
    device_token_id: Optional[str] = None
    masked_pan: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None


@dataclass
class OtpChallenge:
    otp_id: str
    expires_in: int  # seconds
    masked_destination: Optional[str] = None


@dataclass
class OtpVerification:
    is_valid: bool
    remaining_attempts: int
    message: Optional[str] = None


@dataclass
class TokenizationRequest:
    card: CardInput
    device: DeviceInfo
    signals: RiskSignals = field(default_factory=RiskSignals)
    verification_channel: Optional[VerificationChannel] = None
    verification_destination: Optional[str] = None
    otp_code: Optional[str] = None


@dataclass
class TokenizationResult:
    """Terminal outcome of a tokenization attempt"""

    success: bool
    status: TokenizationStatus
    compliance: ComplianceData
    processing_time_ms: float = 0.0
    token_id: Optional[str] = None
    device_token_id: Optional[str] = None
    masked_pan: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    risk: Optional[RiskAssessment] = None
    validation: Optional[ValidationResult] = None
    otp_id: Optional[str] = None


# Compliance log categories
TOKENIZATION_REQUEST = "TOKENIZATION_REQUEST"
TOKENIZATION_RESPONSE = "TOKENIZATION_RESPONSE"
RISK_ASSESSMENT = "RISK_ASSESSMENT"
VERIFICATION = "VERIFICATION"
SECURITY_EVENT = "SECURITY_EVENT"


@dataclass
class LogRecord:
    """Structured compliance log entry"""

    record_id: str
    timestamp: str
    level: str  # INFO | WARN | ERROR
    category: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def new(cls, category: str, message: str, data: Dict[str, Any], level: str = "INFO") -> "LogRecord":
        return cls(
            record_id=f"{category}_{uuid.uuid4().hex[:12]}",
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            category=category,
            message=message,
            data=data,
        )
