"""Bounded, thread-safe compliance log with success-rate metrics and audit export"""

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from wallet_gateway.domain.models import (
    RISK_ASSESSMENT,
    SECURITY_EVENT,
    TOKENIZATION_RESPONSE,
    LogRecord,
)

logger = logging.getLogger(__name__)

REPORT_RECENT_RECORDS = 50

_LEVELS = {"INFO": logging.INFO, "WARN": logging.WARNING, "ERROR": logging.ERROR}


class ComplianceLogSink:
    """
    Append-only in-memory log of tokenization events.

    Holds at most ``capacity`` records; the oldest record is evicted first.
    ``append`` is safe to call from concurrent requests and never raises.
    Each record is also forwarded to the JSON logger.
    """

    def __init__(self, capacity: int = 1000):
        self._records: Deque[LogRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    def append(self, record: LogRecord) -> None:
        try:
            with self._lock:
                self._records.append(record)
            logger.log(
                _LEVELS.get(record.level, logging.INFO),
                record.message,
                extra={"category": record.category, "record_id": record.record_id, "data": record.data},
            )
        except Exception:
            logger.warning("Compliance log append failed", exc_info=True)

    def records(self, category: Optional[str] = None) -> List[LogRecord]:
        with self._lock:
            snapshot = list(self._records)
        if category is None:
            return snapshot
        return [r for r in snapshot if r.category == category]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def metrics(self) -> Dict[str, Any]:
        """Tokenization success rate and risk-tier distribution over retained records"""
        snapshot = self.records()
        responses = [r for r in snapshot if r.category == TOKENIZATION_RESPONSE]
        successes = sum(1 for r in responses if r.data.get("success"))

        distribution = {"GREEN": 0, "YELLOW": 0, "RED": 0}
        for r in snapshot:
            if r.category == RISK_ASSESSMENT:
                path = r.data.get("authentication_path")
                if path in distribution:
                    distribution[path] += 1

        return {
            "tokenization_success_rate": round(successes / len(responses) * 100, 2) if responses else 0.0,
            "total_tokenizations": len(responses),
            "successful_tokenizations": successes,
            "failed_tokenizations": len(responses) - successes,
            "risk_distribution": distribution,
        }

    def export_report(self) -> Dict[str, Any]:
        """Compliance report with metrics, recent records and a summary"""
        snapshot = self.records()
        metrics = self.metrics()

        return {
            "report_timestamp": datetime.now(timezone.utc).isoformat(),
            "report_version": "1.0.0",
            "compliance": {
                "tokenization_standard": "EMV_TOKEN_SPEC_v2.0",
                "risk_assessment_implemented": True,
                "idv_methods_supported": ["SMS_OTP", "EMAIL_OTP", "APP_TO_APP"],
            },
            "metrics": metrics,
            "recent_records": [
                {
                    "record_id": r.record_id,
                    "timestamp": r.timestamp,
                    "level": r.level,
                    "category": r.category,
                    "message": r.message,
                    "data": r.data,
                }
                for r in snapshot[-REPORT_RECENT_RECORDS:]
            ],
            "summary": {
                "total_events": len(snapshot),
                "successful_tokenizations": metrics["successful_tokenizations"],
                "security_events": sum(1 for r in snapshot if r.category == SECURITY_EVENT),
                "risk_assessments": sum(1 for r in snapshot if r.category == RISK_ASSESSMENT),
            },
        }


def check_compliance(metrics: Dict[str, Any], min_success_rate: float = 90.0) -> Dict[str, Any]:
    """Compare tokenization success rate against the network minimum"""
    issues = []
    rate = metrics.get("tokenization_success_rate", 0.0)
    if rate < min_success_rate:
        issues.append(f"Tokenization success rate {rate}% below minimum {min_success_rate}%")
    return {"compliant": not issues, "issues": issues}
