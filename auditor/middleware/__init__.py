"""HTTP middleware."""

from auditor.middleware.logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
