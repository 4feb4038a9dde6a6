"""
Exception hierarchy for order collection and reconciliation.

Exception Hierarchy:
    CollectionError (base)
    ├── AuthenticationFailure  - missing/invalid partner credentials, login exhausted
    ├── UpstreamAPIError       - partner returned non-success or transport failed
    ├── RecognitionFailure     - captcha image could not be turned into a code
    ├── ValidationError        - a single input record failed validation
    └── PersistenceError       - the order store rejected a read or write
"""
from typing import Any, Optional


class CollectionError(Exception):
    """Base exception for all collection-related errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class AuthenticationFailure(CollectionError):
    """
    Credentials are missing or login could not be completed.

    After an exhausted login loop ``details["last_error"]`` carries the final
    attempt's failure.
    """


class UpstreamAPIError(CollectionError):
    """
    A partner API reported failure, or the request never produced a usable body.

    ``error_code`` is the partner's own code when one was returned.
    """

    def __init__(
        self,
        message: str,
        platform: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.platform = platform
        self.error_code = error_code

    def __str__(self) -> str:
        prefix = f"[{self.platform}] " if self.platform else ""
        code = f" (code={self.error_code})" if self.error_code is not None else ""
        return f"{prefix}{self.message}{code}"


class RecognitionFailure(CollectionError):
    """The captcha recognizer failed or returned a code of the wrong length."""


class ValidationError(CollectionError):
    """
    Input validation failed for one record.

    Raised while normalizing imported rows; callers drop the record and count it.
    """

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(f"{field}: {message}", {"field": field, "value": value})
        self.field = field
        self.value = value


class PersistenceError(CollectionError):
    """The order store failed; the session has been rolled back."""


__all__ = [
    "CollectionError",
    "AuthenticationFailure",
    "UpstreamAPIError",
    "RecognitionFailure",
    "ValidationError",
    "PersistenceError",
]
