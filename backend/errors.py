"""Typed failures surfaced to API callers.

Every error carries the HTTP status and the stable error code the exception
handlers in ``main`` render, so each failure kind stays distinguishable at the
boundary.
"""


class CashflowError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class NotFoundError(CashflowError):
    status_code = 404
    error_code = "not_found"


class DataValidationError(CashflowError):
    """Malformed upload content (bad row, missing column, wrong file type)."""
    status_code = 400
    error_code = "validation_error"


# ─── Reasoning service failures ───────────────────────────────────────────────

class UpstreamError(CashflowError):
    """Base for every failure of the outbound reasoning call."""


class UpstreamUnauthorized(UpstreamError):
    status_code = 503
    error_code = "upstream_unauthorized"


class UpstreamRateLimited(UpstreamError):
    status_code = 429
    error_code = "upstream_rate_limited"


class UpstreamBadRequest(UpstreamError):
    status_code = 424
    error_code = "upstream_bad_request"


class UpstreamServerError(UpstreamError):
    """5xx answers, timeouts and connection failures."""
    status_code = 502
    error_code = "upstream_server_error"


class ResponseParseError(UpstreamError):
    status_code = 500
    error_code = "response_parse_error"
