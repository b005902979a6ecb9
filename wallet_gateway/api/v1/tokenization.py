"""POST /v1/validate, /v1/risk, /v1/tokenize - card validation, risk and device tokenization"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from wallet_gateway.api.v1.schemas import (
    RiskRequest,
    RiskResponse,
    TokenizeRequest,
    TokenizeResponse,
    ValidateRequest,
    ValidationResponse,
)
from wallet_gateway.api.dependencies import get_issuer, get_request_id, get_tokenization_service
from wallet_gateway.config import settings
from wallet_gateway.domain.exceptions import ProviderError
from wallet_gateway.domain.models import TokenizationRequest, TokenizationStatus
from wallet_gateway.domain.scoring import evaluate_risk
from wallet_gateway.domain.tokenization import TokenizationService
from wallet_gateway.domain.validation import IssuerSimulator, validate_for_tokenization
from wallet_gateway.infrastructure.observability.logging import log_tokenization
from wallet_gateway.infrastructure.observability.metrics import record_risk_tier, record_tokenization

router = APIRouter()


@router.post("/validate", response_model=ValidationResponse)
def validate_card(request_body: ValidateRequest, issuer: IssuerSimulator = Depends(get_issuer)):
    """Run Luhn, BIN allow-list and format checks without tokenizing"""
    result = validate_for_tokenization(request_body.card.to_domain(), settings.supported_bins, issuer)
    return ValidationResponse.from_domain(result)


@router.post("/risk", response_model=RiskResponse)
def assess_risk(request_body: RiskRequest):
    """Score a card/device pair and return its authentication path"""
    assessment = evaluate_risk(
        request_body.card.to_domain(),
        request_body.device.to_domain(),
        request_body.signals.to_domain(),
        settings.supported_country,
    )
    record_risk_tier(assessment.authentication_path)
    return RiskResponse.from_domain(assessment)


def status_code_for(status: TokenizationStatus, error_code: str | None) -> int:
    if status == TokenizationStatus.SUCCESS:
        return 200
    if status == TokenizationStatus.PENDING:
        return 202
    if error_code == ProviderError.code:
        return 502
    return 422


@router.post("/tokenize", response_model=TokenizeResponse)
async def tokenize(
    request_body: TokenizeRequest,
    request: Request,
    response: Response,
    service: TokenizationService = Depends(get_tokenization_service),
):
    """
    Tokenize a card for this device.

    Flow:
    1. Validate card data
    2. Check device eligibility
    3. Evaluate risk (RED denies, YELLOW needs OTP)
    4. Call the tokenization provider
    5. Record metrics and logs
    """
    start_time = time.time()
    request_id = get_request_id(request)
    domain_request: TokenizationRequest = request_body.to_domain()

    try:
        result = await service.tokenize_card(domain_request)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_tokenization(result)
    log_tokenization(
        request_id,
        result.status.value,
        result.error_code,
        result.risk.authentication_path.value if result.risk else None,
        duration_ms,
    )

    response.status_code = status_code_for(result.status, result.error_code)
    return TokenizeResponse.from_domain(result)
