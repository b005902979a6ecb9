"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request

from wallet_gateway.config import settings
from wallet_gateway.domain.tokenization import (
    DeviceCapabilityProbe,
    TokenizationProvider,
    TokenizationService,
    VerificationProvider,
)
from wallet_gateway.domain.validation import IssuerSimulator, SimulatedIssuer
from wallet_gateway.infrastructure.clients.celcoin import CelcoinClient
from wallet_gateway.infrastructure.clients.device import StaticDeviceProbe
from wallet_gateway.infrastructure.clients.simulated import (
    SimulatedCelcoinProvider,
    SimulatedVerificationProvider,
)
from wallet_gateway.infrastructure.observability.compliance_log import ComplianceLogSink


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_log_sink(request: Request) -> ComplianceLogSink:
    """Application-wide compliance log created by the app factory"""
    return request.app.state.log_sink


def get_verifier(request: Request) -> VerificationProvider:
    """Verifier is shared so attempt counters survive across requests"""
    return request.app.state.verifier


def get_provider() -> TokenizationProvider:
    """Provide tokenization provider instance"""
    if settings.use_simulated_provider:
        return SimulatedCelcoinProvider(delay_seconds=settings.simulated_provider_delay_seconds)
    return CelcoinClient()


def get_device_probe() -> DeviceCapabilityProbe:
    return StaticDeviceProbe()


def get_issuer() -> IssuerSimulator:
    return SimulatedIssuer()


def get_tokenization_service(
    provider: TokenizationProvider = Depends(get_provider),
    verifier: VerificationProvider = Depends(get_verifier),
    device_probe: DeviceCapabilityProbe = Depends(get_device_probe),
    log_sink: ComplianceLogSink = Depends(get_log_sink),
    issuer: IssuerSimulator = Depends(get_issuer),
) -> TokenizationService:
    """Assemble a request-scoped orchestrator"""
    return TokenizationService(
        provider=provider,
        verifier=verifier,
        device_probe=device_probe,
        log_sink=log_sink,
        issuer=issuer,
        supported_bins=settings.supported_bins,
        supported_country=settings.supported_country,
        provider_timeout=settings.provider_timeout_seconds,
    )
