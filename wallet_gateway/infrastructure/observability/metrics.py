"""Prometheus metrics for tokenization outcomes, risk tiers and provider performance"""

from prometheus_client import Counter, Histogram

from wallet_gateway.domain.models import AuthenticationPath, TokenizationResult

# Tokenization metrics
tokenization_counter = Counter(
    "wallet_tokenization_total",
    "Total tokenization attempts by terminal outcome",
    ["outcome"],  # success | pending | validation_failed | device_not_eligible | risk_denied | ...
)

risk_tier_counter = Counter(
    "wallet_risk_tier_total",
    "Risk assessments by authentication path",
    ["tier"],  # GREEN | YELLOW | RED
)

# Provider metrics
provider_latency_histogram = Histogram(
    "provider_latency_seconds",
    "Tokenization provider response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

provider_failure_counter = Counter(
    "provider_failures_total",
    "Failed tokenization provider calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_tokenization(result: TokenizationResult) -> None:
    """Record outcome and risk tier of a finished tokenization attempt"""
    if result.success:
        outcome = "success"
    elif result.error_code:
        outcome = result.error_code.lower()
    else:
        outcome = result.status.value.lower()
    tokenization_counter.labels(outcome=outcome).inc()

    if result.risk is not None:
        record_risk_tier(result.risk.authentication_path)

    if result.error_code == "PROVIDER_ERROR":
        provider_failure_counter.inc()


def record_risk_tier(tier: AuthenticationPath) -> None:
    risk_tier_counter.labels(tier=tier.value).inc()
