"""Risk scoring engine - core business logic for tokenization decisions"""

from typing import Tuple

from wallet_gateway.domain.models import (
    AuthenticationPath,
    CardInput,
    DeviceInfo,
    RiskAssessment,
    RiskBreakdown,
    RiskSignals,
)
from wallet_gateway.domain.validation import MAIN_BRANDS, resolve_brand

DEVICE_RISK_CAP = 30
ACCOUNT_RISK_CAP = 30
GEOLOCATION_RISK_CAP = 20
CARD_RISK_CAP = 20

GREEN_THRESHOLD = 70
YELLOW_THRESHOLD = 40

HIGH_TRUST_DEVICE = 80


def device_risk(device: DeviceInfo) -> int:
    """NFC +10, biometrics +15, trust baseline above 80 +15; capped at 30"""
    score = 0
    if device.has_nfc:
        score += 10
    if device.has_biometrics:
        score += 15
    if device.risk_score > HIGH_TRUST_DEVICE:
        score += 15
    return min(score, DEVICE_RISK_CAP)


def account_risk(card: CardInput, signals: RiskSignals) -> int:
    """Base 15, main brand +5, good history +10, returning user +5; capped at 30"""
    score = 15
    if resolve_brand(card) in MAIN_BRANDS:
        score += 5
    if signals.good_account_history:
        score += 10
    if not signals.first_time_use:
        score += 5
    return min(score, ACCOUNT_RISK_CAP)


def geolocation_risk(signals: RiskSignals, supported_country: str) -> int:
    """Supported country +15, known location +5; capped at 20"""
    score = 0
    if signals.region == supported_country:
        score += 15
    if signals.known_location:
        score += 5
    return min(score, GEOLOCATION_RISK_CAP)


def card_risk(card: CardInput) -> int:
    """Base 5, main brand +15; capped at 20"""
    score = 5
    if resolve_brand(card) in MAIN_BRANDS:
        score += 15
    return min(score, CARD_RISK_CAP)


def total_risk_score(breakdown: RiskBreakdown) -> int:
    total = breakdown.device + breakdown.account + breakdown.geolocation + breakdown.card
    return max(0, min(total, 100))


def determine_authentication_path(score: int) -> Tuple[AuthenticationPath, str]:
    """
    Map a 0-100 confidence score to an authentication path.

    Tiers:
    - 70+:   GREEN  (automatic approval)
    - 40-69: YELLOW (additional verification)
    - <40:   RED    (tokenization denied)

    Returns: (authentication_path, reason)
    """
    if score >= GREEN_THRESHOLD:
        return AuthenticationPath.GREEN, f"High confidence score ({score}/100) - automatic approval"
    elif score >= YELLOW_THRESHOLD:
        return AuthenticationPath.YELLOW, f"Moderate score ({score}/100) - additional verification required"
    else:
        return AuthenticationPath.RED, f"Low score ({score}/100) - tokenization denied"


def evaluate_risk(
    card: CardInput,
    device: DeviceInfo,
    signals: RiskSignals,
    supported_country: str = "BR",
) -> RiskAssessment:
    """
    Main entry point: score device, account, location and card factors.

    Same inputs and signals always produce the same assessment.
    """
    breakdown = RiskBreakdown(
        device=device_risk(device),
        account=account_risk(card, signals),
        geolocation=geolocation_risk(signals, supported_country),
        card=card_risk(card),
    )
    score = total_risk_score(breakdown)
    path, reason = determine_authentication_path(score)

    return RiskAssessment(
        risk_score=score,
        authentication_path=path,
        reason=reason,
        breakdown=breakdown,
    )
