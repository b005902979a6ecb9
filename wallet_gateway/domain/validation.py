"""Card validation - checksum, brand, BIN allow-list and field format"""

import random
import re
from typing import Iterable, List, Optional, Protocol

from wallet_gateway.domain.exceptions import (
    IncompleteFieldsError,
    InvalidCvvFormatError,
    InvalidExpiryFormatError,
    InvalidFormatError,
    UnsupportedBinError,
    ValidationError,
)
from wallet_gateway.domain.models import (
    CardBrand,
    CardInput,
    IssuerResponse,
    ValidationFailure,
    ValidationResult,
)

MIN_PAN_LENGTH = 13
MAX_PAN_LENGTH = 19

PAN_PATTERN = re.compile(r"[0-9]{%d,%d}" % (MIN_PAN_LENGTH, MAX_PAN_LENGTH))
EXPIRY_PATTERN = re.compile(r"(0[1-9]|1[0-2])/[0-9]{2}")
CVV_PATTERN = re.compile(r"[0-9]{3,4}")

MAIN_BRANDS = (CardBrand.VISA, CardBrand.MASTERCARD)


def clean_number(number: str) -> str:
    return re.sub(r"\s", "", number or "")


def luhn_check(number: str) -> bool:
    """
    Standard mod-10 checksum.

    Whitespace is ignored. Anything that is not 13-19 ASCII digits after
    cleaning fails outright.
    """
    cleaned = clean_number(number)
    if not PAN_PATTERN.fullmatch(cleaned):
        return False

    total = 0
    for i, char in enumerate(reversed(cleaned)):
        digit = int(char)
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit

    return total % 10 == 0


def detect_brand(number: str) -> CardBrand:
    """Map a PAN prefix to its card brand (first matching rule wins)"""
    cleaned = clean_number(number)

    if re.match(r"^4", cleaned):
        return CardBrand.VISA
    if re.match(r"^5[1-5]", cleaned) or re.match(r"^2[2-7]", cleaned):
        return CardBrand.MASTERCARD
    if re.match(r"^3[47]", cleaned):
        return CardBrand.AMEX
    if re.match(r"^6", cleaned):
        return CardBrand.DISCOVER

    return CardBrand.UNKNOWN


def resolve_brand(card: CardInput) -> CardBrand:
    return card.brand or detect_brand(card.number)


def mask_pan(number: str) -> str:
    return f"**** **** **** {clean_number(number)[-4:]}"


def format_card_number(value: str) -> str:
    """Group digits in blocks of four for display"""
    return " ".join(re.findall(r"\d{1,4}", clean_number(value)))


def format_expiry(value: str) -> str:
    """Turn raw digit input such as '1227' into '12/27'"""
    cleaned = re.sub(r"\D", "", value or "")
    match = re.match(r"^(\d{2})(\d{0,2})$", cleaned)
    if match:
        return f"{match.group(1)}/{match.group(2)}" if match.group(2) else match.group(1)
    return cleaned


def validate_card_number(number: str) -> None:
    if not luhn_check(number):
        raise InvalidFormatError("Invalid card number (Luhn check failed)")


def validate_bin(number: str, supported_bins: Iterable[str]) -> None:
    """
    Check the first 6 digits against the allow-list.

    A BIN is accepted when it shares its 4-digit prefix with any reference BIN.
    """
    bin_ = clean_number(number)[:6]
    if not any(bin_.startswith(ref[:4]) for ref in supported_bins):
        raise UnsupportedBinError(f"BIN {bin_} not supported for tokenization")


def validate_format(card: CardInput) -> None:
    if not card.holder or not card.expiry or not card.cvv:
        raise IncompleteFieldsError("Holder, expiry and CVV are required")
    if not EXPIRY_PATTERN.fullmatch(card.expiry):
        raise InvalidExpiryFormatError("Expiry must be MM/YY")
    if not CVV_PATTERN.fullmatch(card.cvv):
        raise InvalidCvvFormatError("CVV must be 3 or 4 digits")


class IssuerSimulator(Protocol):
    def respond(self, card: CardInput) -> IssuerResponse: ...


class SimulatedIssuer:
    """
    Issuer lookup stand-in using per-brand approval rates.

    Rates: 70% base, 85% for Visa/Mastercard, 90% for the premium BIN 453210,
    20% when holder/expiry/CVV are incomplete. Of approved draws, the top 20%
    of the approval band come back as REQUIRES_VERIFICATION.
    """

    PREMIUM_BIN = "453210"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def approval_rate(self, card: CardInput) -> float:
        rate = 0.7
        if resolve_brand(card) in MAIN_BRANDS:
            rate = 0.85
        if clean_number(card.number).startswith(self.PREMIUM_BIN):
            rate = 0.90
        if not (card.cvv and card.expiry and card.holder):
            rate = 0.2
        return rate

    def respond(self, card: CardInput) -> IssuerResponse:
        rate = self.approval_rate(card)
        draw = self.rng.random()
        if draw < rate * 0.8:
            return IssuerResponse.APPROVED
        if draw < rate:
            return IssuerResponse.REQUIRES_VERIFICATION
        return IssuerResponse.DECLINED


class StaticIssuer:
    """Issuer that always answers the same way"""

    def __init__(self, response: IssuerResponse = IssuerResponse.APPROVED):
        self.response = response

    def respond(self, card: CardInput) -> IssuerResponse:
        return self.response


def validate_for_tokenization(
    card: CardInput,
    supported_bins: Iterable[str],
    issuer: IssuerSimulator,
) -> ValidationResult:
    """
    Run every validation rule and collect failures in check order.

    Rules: card number (Luhn) -> BIN allow-list -> field format. The issuer
    response is informational and does not affect validity.
    """
    supported_bins = list(supported_bins)
    failures: List[ValidationFailure] = []

    checks = (
        lambda: validate_card_number(card.number),
        lambda: validate_bin(card.number, supported_bins),
        lambda: validate_format(card),
    )
    for check in checks:
        try:
            check()
        except ValidationError as e:
            failures.append(ValidationFailure(code=e.code, message=str(e)))

    return ValidationResult(
        is_valid=not failures,
        errors=[f.message for f in failures],
        issuer_response=issuer.respond(card),
        failures=failures,
        masked_pan=mask_pan(card.number),
    )
