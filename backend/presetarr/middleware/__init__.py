"""
Middleware modules for Presetarr.
"""
from presetarr.middleware.correlation import (
    CorrelationIdMiddleware,
    correlation_id_filter,
    get_correlation_id,
    get_request_user,
)

__all__ = ["CorrelationIdMiddleware", "correlation_id_filter", "get_correlation_id", "get_request_user"]
