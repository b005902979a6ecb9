"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "DOMAIN_ERROR"


class ValidationError(DomainException):
    """Card data failed structural validation"""

    code = "VALIDATION_FAILED"


class InvalidFormatError(ValidationError):
    """Card number is not a 13-19 digit string passing the Luhn checksum"""

    code = "INVALID_FORMAT"


class UnsupportedBinError(ValidationError):
    """BIN is not on the tokenization allow-list"""

    code = "UNSUPPORTED_BIN"


class IncompleteFieldsError(ValidationError):
    """Holder, expiry or CVV is missing"""

    code = "INCOMPLETE_FIELDS"


class InvalidExpiryFormatError(ValidationError):
    """Expiry is not MM/YY"""

    code = "INVALID_EXPIRY_FORMAT"


class InvalidCvvFormatError(ValidationError):
    """CVV is not 3-4 digits"""

    code = "INVALID_CVV_FORMAT"


class DeviceNotEligibleError(DomainException):
    """Device lacks a capability required for device tokenization"""

    code = "DEVICE_NOT_ELIGIBLE"


class RiskDeniedError(DomainException):
    """Risk assessment landed in the RED tier"""

    code = "RISK_DENIED"


class ProviderError(DomainException):
    """Tokenization provider returned an error, timed out or is unavailable"""

    code = "PROVIDER_ERROR"


class VerificationError(DomainException):
    """Identity verification could not be completed"""

    code = "VERIFICATION_FAILED"
