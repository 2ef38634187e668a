"""Central error types used across the application."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when required credentials, tokens or options are missing or invalid."""


class AuthorizationError(RuntimeError):
    """Base error for the browser OAuth hand-off.

    ``explanation`` is the human-readable text rendered on the callback page.
    """

    explanation = "Authorization failed."


class AuthorizationDeniedError(AuthorizationError):
    """Raised when the athlete declines access on the consent page."""

    explanation = (
        "The user clicked the 'Do not Authorize' button on the previous page."
    )


class InvalidCredentialsError(AuthorizationError):
    """Raised when Strava rejects the application client ID or secret."""

    explanation = "You provided an incorrect client_id or client_secret."


class InvalidCodeError(AuthorizationError):
    """Raised when the temporary authorization code is missing or not recognised."""

    explanation = (
        "The temporary authorization code was not recognized, this shouldn't happen normally."
    )


class OAuthServerError(AuthorizationError):
    """Raised when Strava fails while exchanging the code (re-run to retry)."""

    explanation = (
        "There was some sort of server error, try again to see if the problem continues."
    )


class EmptyTokenError(AuthorizationError):
    """Raised when Strava reports success but the access token is empty."""

    explanation = "Strava did not return an access token."


class AuthorizationTimeoutError(AuthorizationError):
    """Raised when the consent is not completed within the configured wait."""

    explanation = "Timed out waiting for authorization."


class FetchError(RuntimeError):
    """Base error for Strava activity fetch failures."""

    def __init__(self, message: str, *, activity_id: int | None = None) -> None:
        super().__init__(message)
        self.activity_id = activity_id


class StravaPermissionError(FetchError):
    """Raised when the API reports insufficient scopes or authentication issues."""


class StravaResourceNotFoundError(FetchError):
    """Raised when an activity does not exist."""


class StravaRateLimitError(FetchError):
    """Raised when Strava returns HTTP 429."""


__all__ = [
    "ConfigurationError",
    "AuthorizationError",
    "AuthorizationDeniedError",
    "InvalidCredentialsError",
    "InvalidCodeError",
    "OAuthServerError",
    "EmptyTokenError",
    "AuthorizationTimeoutError",
    "FetchError",
    "StravaPermissionError",
    "StravaResourceNotFoundError",
    "StravaRateLimitError",
]
