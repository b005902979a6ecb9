"""Sandbox stand-ins for the Celcoin provider and the OTP / app-to-app verifier"""

import asyncio
import logging
import random
import re
import time
import uuid
from typing import Callable, Dict, Optional, Tuple

from wallet_gateway.domain.exceptions import VerificationError
from wallet_gateway.domain.models import (
    OtpChallenge,
    OtpVerification,
    ProviderResponse,
    TokenizationPayload,
    VerificationChannel,
)
from wallet_gateway.infrastructure.clients.celcoin import generate_device_token

logger = logging.getLogger(__name__)


class SimulatedCelcoinProvider:
    """
    Local replacement for the Celcoin sandbox.

    Succeeds with probability ``success_rate`` (90% by default) drawn from the
    injected RNG, after ``delay_seconds`` of simulated network latency.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        success_rate: float = 0.9,
        delay_seconds: float = 0.0,
    ):
        self.rng = rng or random.Random()
        self.success_rate = success_rate
        self.delay_seconds = delay_seconds

    async def tokenize(self, payload: TokenizationPayload) -> ProviderResponse:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        if self.rng.random() >= self.success_rate:
            return ProviderResponse(
                success=False,
                error_code="CELCOIN_ERROR",
                message="Virtual card creation failed",
            )

        card_id = self.rng.randrange(100_000)
        logger.info("Simulated Celcoin card created", extra={"card_id": card_id})
        return ProviderResponse(
            success=True,
            token_id=str(card_id),
            device_token_id=generate_device_token(self.rng),
            masked_pan=payload.masked_pan,
        )


# Challenge lifetime per channel, seconds
OTP_EXPIRY = {
    VerificationChannel.SMS_OTP: 300,
    VerificationChannel.EMAIL_OTP: 600,
    VerificationChannel.APP_TO_APP: 120,
}

MAX_ATTEMPTS = 3


def mask_phone(phone: str) -> str:
    return re.sub(r"(\d{2})(\d+)(\d{4})", r"(\1) ****-\3", phone)


def mask_email(email: str) -> str:
    return re.sub(r"(.{2})(.*)(@.*)", r"\1***\3", email)


class SimulatedVerificationProvider:
    """
    Demo OTP issuer.

    Any code ending in ``123`` or equal to ``000000`` verifies. Phone numbers
    need at least 10 digits; e-mail addresses need an ``@`` and a dot.

    Each challenge allows ``MAX_ATTEMPTS`` wrong codes and lives for its
    channel's ``OTP_EXPIRY``. Verified, exhausted and expired challenges are
    dropped, and at most ``max_pending`` challenges are kept (oldest evicted).
    """

    def __init__(self, max_pending: int = 10_000, clock: Callable[[], float] = time.monotonic):
        self.max_pending = max_pending
        self.clock = clock
        # otp_id -> (remaining attempts, expiry deadline)
        self._challenges: Dict[str, Tuple[int, float]] = {}

    def _purge_expired(self) -> None:
        now = self.clock()
        for otp_id in [k for k, (_, deadline) in self._challenges.items() if deadline <= now]:
            del self._challenges[otp_id]

    def pending(self) -> int:
        self._purge_expired()
        return len(self._challenges)

    async def initiate(self, channel: VerificationChannel, destination: str) -> OtpChallenge:
        if channel == VerificationChannel.SMS_OTP:
            digits = re.sub(r"\D", "", destination or "")
            if len(digits) < 10:
                raise VerificationError("Invalid phone number for SMS OTP")
            masked = mask_phone(digits)
        elif channel == VerificationChannel.EMAIL_OTP:
            if not destination or "@" not in destination or "." not in destination:
                raise VerificationError("Invalid e-mail address for e-mail OTP")
            masked = mask_email(destination)
        else:
            if not destination:
                raise VerificationError("App-to-app verification requires a user id")
            masked = destination

        self._purge_expired()
        while len(self._challenges) >= self.max_pending:
            del self._challenges[next(iter(self._challenges))]

        otp_id = f"{channel.value}_{uuid.uuid4().hex}"
        self._challenges[otp_id] = (MAX_ATTEMPTS, self.clock() + OTP_EXPIRY[channel])
        logger.info("OTP challenge sent", extra={"otp_id": otp_id, "destination": masked})
        return OtpChallenge(otp_id=otp_id, expires_in=OTP_EXPIRY[channel], masked_destination=masked)

    async def verify(self, otp_id: str, code: str) -> OtpVerification:
        self._purge_expired()
        challenge = self._challenges.get(otp_id)
        if challenge is None:
            return OtpVerification(is_valid=False, remaining_attempts=0, message="Unknown or expired challenge")

        remaining, deadline = challenge
        if bool(code) and (code.endswith("123") or code == "000000"):
            del self._challenges[otp_id]
            return OtpVerification(is_valid=True, remaining_attempts=0, message="Code verified")

        remaining -= 1
        if remaining <= 0:
            del self._challenges[otp_id]
            logger.warning("OTP challenge locked", extra={"otp_id": otp_id})
            return OtpVerification(is_valid=False, remaining_attempts=0, message="Too many attempts")

        self._challenges[otp_id] = (remaining, deadline)
        return OtpVerification(is_valid=False, remaining_attempts=remaining, message="Invalid code")
