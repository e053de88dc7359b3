"""Error taxonomy shared by the chat, email and newsletter services."""
from typing import List, Optional

from models.business import TUXTLA

DEFAULT_FALLBACK = f"Por favor llama al {TUXTLA.phone} para asistencia. 📞"


class ValidationError(Exception):
    """Bad client input (HTTP 400)."""

    def __init__(self, reason: str, message: str, fallback: str = DEFAULT_FALLBACK):
        self.reason = reason
        self.message = message
        self.fallback = fallback
        super().__init__(message)


class RateLimitError(Exception):
    """Client exceeded its request window (HTTP 429)."""

    def __init__(self, retry_after: int, limit: int, intents: Optional[List[str]] = None):
        self.retry_after = retry_after
        self.limit = limit
        self.intents = list(intents or [])
        super().__init__(f"Rate limit exceeded, retry after {retry_after}s")


class ConfigurationError(Exception):
    """A required environment variable for a feature is missing."""


class UpstreamError(Exception):
    """Failure talking to an external service (LLM, CMS, SMTP, Brevo)."""

    code = "unknown_error"

    def __init__(self, message: str, service: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        super().__init__(message)


class UpstreamAuthError(UpstreamError):
    code = "auth_error"


class UpstreamQuotaError(UpstreamError):
    code = "quota_exceeded"


class UpstreamNetworkError(UpstreamError):
    code = "network_error"


class UpstreamUnknownError(UpstreamError):
    code = "unknown_error"
