"""GET /v1/compliance/* - tokenization success metrics and audit report"""

from fastapi import APIRouter, Depends

from wallet_gateway.api.dependencies import get_log_sink
from wallet_gateway.api.v1.schemas import ComplianceMetricsResponse
from wallet_gateway.config import settings
from wallet_gateway.infrastructure.observability.compliance_log import ComplianceLogSink, check_compliance

router = APIRouter()


@router.get("/compliance/metrics", response_model=ComplianceMetricsResponse)
def get_compliance_metrics(log_sink: ComplianceLogSink = Depends(get_log_sink)):
    """Success rate and risk distribution over the retained compliance log"""
    metrics = log_sink.metrics()
    verdict = check_compliance(metrics, settings.compliance_min_success_rate)
    return ComplianceMetricsResponse(**metrics, **verdict)


@router.get("/compliance/report")
def get_compliance_report(log_sink: ComplianceLogSink = Depends(get_log_sink)):
    """Full compliance export with the most recent records"""
    return log_sink.export_report()
