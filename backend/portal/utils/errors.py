"""
Custom error classes for the application.
"""
from typing import Optional


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        status_code: int = 500,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotSignedInError(AppError):
    """No usable access token for the provider."""

    def __init__(self, provider: str = ""):
        message = f"Not signed in to {provider}." if provider else "User not signed in."
        super().__init__(message, "NOT_SIGNED_IN", status_code=401)


class RequestFailedError(AppError):
    """
    Provider answered with a non-2xx status.

    status is 0 when the request never got a response (DNS, timeout, reset).
    """

    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(
            message or f"Request failed with status {status}",
            "REQUEST_FAILED",
            status_code=502,
            details={"status": status},
        )


class DecodeFailedError(AppError):
    """Provider response body could not be decoded."""

    def __init__(self, message: str = "Malformed response from provider."):
        super().__init__(message, "DECODE_FAILED", status_code=502)


class ValidationFailedError(AppError):
    """Input rejected locally before any request was sent."""

    def __init__(self, message: str = "Invalid request."):
        super().__init__(message, "VALIDATION_FAILED", status_code=400)


class OAuthError(AppError):
    """OAuth configuration or token endpoint failure."""

    def __init__(self, reason: str, code: str = "OAUTH_ERROR"):
        self.reason = reason
        super().__init__(reason, code, status_code=401, details={"reason": reason})


class ConsentDeniedError(OAuthError):
    """User cancelled or denied the consent screen (or never finished it)."""

    def __init__(self, reason: str = "access_denied"):
        super().__init__(reason, "CONSENT_DENIED")


class SignInInProgressError(AppError):
    """A sign-in for this provider is already running."""

    def __init__(self, provider: str):
        super().__init__(
            f"Sign-in to {provider} is already in progress.",
            "SIGN_IN_IN_PROGRESS",
            status_code=409,
        )


class SignInCancelledError(AppError):
    """The provider was signed out before a pending sign-in finished."""

    def __init__(self, provider: str):
        super().__init__(
            f"Sign-in to {provider} was cancelled by a sign-out.",
            "SIGN_IN_CANCELLED",
            status_code=409,
        )
