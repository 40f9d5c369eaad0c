#!/usr/bin/env python3
"""
Metrics adapter request audit logger

Provides structured logging for external metric requests.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

from fastapi import Request


class AuditLogger:
    """Centralized audit logging for metric requests."""

    def __init__(self):
        self.logger = logging.getLogger("metrics_adapter.audit")

    def _log_event(self, event_type: str, details: Dict[str, Any], request: Optional[Request] = None):
        """Log a structured audit event."""
        audit_record = {
            "timestamp": int(time.time()),
            "event_type": event_type,
            "details": details
        }

        if request:
            client_ip = request.client.host if request.client else "unknown"
            audit_record.update({
                "client_ip": client_ip,
                "user_agent": request.headers.get("user-agent", "unknown"),
                "method": request.method,
                "url": str(request.url)
            })

        # Log as JSON for structured parsing
        self.logger.info(json.dumps(audit_record, default=str))

    def metric_request(self, metric_name: str, namespace: str, selector: str, success: bool,
                       duration_ms: float, error: Optional[Exception] = None,
                       request: Optional[Request] = None):
        """Log one external metric request and its outcome."""
        details = {
            "metric": metric_name,
            "namespace": namespace,
            "selector": selector,
            "success": success,
            "duration_ms": round(duration_ms, 2),
        }
        if error is not None:
            details["error_kind"] = type(error).__name__
            details["error"] = str(error)
        self._log_event("metric_request", details, request=request)


# Global audit logger instance
audit_logger = AuditLogger()
