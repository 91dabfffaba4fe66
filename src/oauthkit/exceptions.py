"""Exception hierarchy for oauthkit.

All exceptions inherit from :class:`OAuthKitError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`oauthkit.exit_codes`.
The library raises these from the token-endpoint round trip; the CLI entry
point in :func:`oauthkit.app.main` catches ``OAuthKitError`` and exits with
the matching code.

Transport failures are not wrapped: :mod:`httpx` exceptions propagate to
the caller unchanged.

Subclass hierarchy::

    OAuthKitError (exit 1)
    +-- InvalidUsageError            (exit 2)
    +-- ConfigError                  (exit 1)
    +-- TokenError                   (exit 3)
        +-- TokenRetrieveError
        +-- ResponseParseError
        +-- MissingAccessTokenError
        +-- RefreshTokenMissingError
"""

from __future__ import annotations

from oauthkit.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_TOKEN_FAILURE,
)


class OAuthKitError(Exception):
    """Base exception for all oauthkit errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(OAuthKitError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(OAuthKitError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class TokenError(OAuthKitError):
    """Base class for failures talking to the token endpoint."""

    exit_code = EXIT_TOKEN_FAILURE


class TokenRetrieveError(TokenError):
    """Raised when the token endpoint answers with a non-2xx status.

    The raw response body is kept so callers can inspect provider-specific
    error payloads such as ``{"error": "invalid_grant"}``.

    Args:
        status_code: HTTP status code of the response.
        reason: Reason phrase for the status code (e.g. ``"Bad Request"``).
        body: Response body as text, truncated at the read limit.
    """

    def __init__(self, status_code: int, reason: str, body: str):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(
            f"oauth2: cannot fetch token: {status_code} {reason}\nResponse: {body}"
        )


class ResponseParseError(TokenError):
    """Raised when a 2xx token response body cannot be decoded."""


class MissingAccessTokenError(TokenError):
    """Raised when a well-formed token response carries no ``access_token``."""

    def __init__(self, message: str = "oauth2: server response missing access_token"):
        super().__init__(message)


class RefreshTokenMissingError(TokenError):
    """Raised by :meth:`~oauthkit.client.Client.token` when no refresh token is given."""

    def __init__(
        self, message: str = "oauth2: token expired and refresh token is not set"
    ):
        super().__init__(message)
