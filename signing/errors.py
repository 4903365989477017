import json
from typing import Any, Iterable, Optional, Tuple


GENERIC_ERROR_MESSAGE = "Embedded signing error"


class SigningError(Exception):
    """Base error for a failed signing session start.

    ``message`` is safe to show to the caller, ``detail`` holds whatever
    structured error body the provider returned (for the logs).
    """

    def __init__(self, message: str, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ConfigurationError(SigningError):
    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__("Missing configuration: " + ", ".join(self.missing))


class AuthenticationError(SigningError):
    pass


class ProviderRequestError(SigningError):
    pass


def _decode_body(body: Any) -> Any:
    if body is None:
        return None
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        if not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


def describe_api_exception(exc: Exception, fallback: str = GENERIC_ERROR_MESSAGE) -> Tuple[str, Any]:
    """Return ``(message, detail)`` for a DocuSign SDK ``ApiException``.

    REST errors look like ``{"errorCode": ..., "message": ...}``, the OAuth
    endpoint answers ``{"error": ..., "error_description": ...}``.
    """
    detail = _decode_body(getattr(exc, "body", None))
    message: Optional[str] = None
    if isinstance(detail, dict):
        message = (
            detail.get("message")
            or detail.get("error_description")
            or detail.get("errorCode")
            or detail.get("error")
        )
    elif isinstance(detail, str):
        message = detail
    if not message:
        message = getattr(exc, "reason", None) or fallback
    return str(message), detail
