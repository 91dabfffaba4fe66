"""Token endpoint response parsing.

:func:`parse_response` turns the :class:`httpx.Response` of a token
request into a :class:`~oauthkit.token.Token`. Two body formats are
understood:

* ``application/x-www-form-urlencoded`` and ``text/plain`` -- decoded as a
  query string (GitHub's classic token endpoint answers this way).
* Anything else -- decoded as JSON (:rfc:`6749` section 5.1).

Bodies are read up to :data:`MAX_BODY_BYTES`; the response is always
closed before returning.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import timedelta
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError, field_validator

from oauthkit import token as token_module
from oauthkit.exceptions import (
    MissingAccessTokenError,
    ResponseParseError,
    TokenRetrieveError,
)
from oauthkit.token import FormFields, JSONFields, Token
from oauthkit.values import get_value, parse_query

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 1 << 20
"""Upper bound on how much of a token response body is read."""

_MIN_EXPIRES_IN = -(2**31)
_MAX_EXPIRES_IN = 2**31 - 1
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")
_FORM_TYPES = ("application/x-www-form-urlencoded", "text/plain")


def _clamp_expires_in(seconds: int) -> int:
    return max(_MIN_EXPIRES_IN, min(seconds, _MAX_EXPIRES_IN))


def _form_expires_in(value: str) -> int:
    """Seconds from a form ``expires_in``; ``0`` unless it is a plain int64."""
    if not _INTEGER.fullmatch(value):
        return 0
    seconds = int(value)
    if not _INT64_MIN <= seconds <= _INT64_MAX:
        return 0
    return _clamp_expires_in(seconds)


class TokenPayload(BaseModel):
    """The standard fields of a JSON token response.

    ``expires_in`` is accepted as a JSON integer or as a string holding
    one (PayPal sends the latter), and is clamped to the int32 range.
    ``null`` or a missing field means no expiry and is stored as ``0``.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: StrictStr = ""
    token_type: StrictStr = ""
    refresh_token: StrictStr = ""
    expires_in: int = 0

    @field_validator("expires_in", mode="before")
    @classmethod
    def _coerce_expires_in(cls, value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, bool):
            raise ValueError("expires_in must be a number")
        if isinstance(value, int):
            seconds = value
        elif isinstance(value, str) and _INTEGER.fullmatch(value):
            seconds = int(value)
        else:
            raise ValueError(f"expires_in is not an integer: {value!r}")
        if not _INT64_MIN <= seconds <= _INT64_MAX:
            raise ValueError(f"expires_in out of range: {value!r}")
        return _clamp_expires_in(seconds)


def read_body(response: httpx.Response, limit: int = MAX_BODY_BYTES) -> bytes:
    """Read at most *limit* bytes of *response* and close it.

    Works for both streamed and already-loaded responses.
    """
    chunks: list[bytes] = []
    remaining = limit
    try:
        for chunk in response.iter_bytes():
            if len(chunk) >= remaining:
                chunks.append(chunk[:remaining])
                break
            chunks.append(chunk)
            remaining -= len(chunk)
    finally:
        response.close()
    return b"".join(chunks)


def media_type(response: httpx.Response) -> str:
    """Return the lower-cased media type of *response*, without parameters."""
    header = response.headers.get("content-type", "")
    return header.split(";", 1)[0].strip().lower()


def parse_response(response: httpx.Response) -> Token:
    """Convert a token endpoint response into a :class:`~oauthkit.token.Token`.

    Args:
        response: The HTTP response. It is consumed and closed.

    Returns:
        The parsed token.

    Raises:
        TokenRetrieveError: If the status code is outside 200-299.
        ResponseParseError: If the body is not valid for its content type.
        MissingAccessTokenError: If the body has no ``access_token``.
    """
    body = read_body(response)
    status = response.status_code
    if status < 200 or status > 299:
        raise TokenRetrieveError(
            status,
            httpx.codes.get_reason_phrase(status),
            body.decode("utf-8", errors="replace"),
        )

    content_type = media_type(response)
    logger.debug("Parsing %d byte token response as %s", len(body), content_type or "json")
    if content_type in _FORM_TYPES:
        token = parse_form(body)
    else:
        token = parse_json(body)

    if not token.access_token:
        raise MissingAccessTokenError()
    return token


def parse_form(body: bytes) -> Token:
    """Parse a form-encoded token body."""
    try:
        vals = parse_query(body.decode("utf-8", errors="replace"))
    except ValueError as exc:
        raise ResponseParseError(f"oauth2: cannot parse token response: {exc}") from exc

    expires_in = _form_expires_in(get_value(vals, "expires_in"))
    expiry = None
    if expires_in:
        expiry = token_module.now() + timedelta(seconds=expires_in)

    return Token(
        access_token=get_value(vals, "access_token"),
        token_type=get_value(vals, "token_type"),
        refresh_token=get_value(vals, "refresh_token"),
        expiry=expiry,
        raw=FormFields(vals),
    )


def parse_json(body: bytes) -> Token:
    """Parse a JSON token body."""
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise ResponseParseError(f"oauth2: cannot parse token response: {exc}") from exc

    try:
        payload = TokenPayload.model_validate(data)
    except ValidationError as exc:
        raise ResponseParseError(f"oauth2: cannot parse token response: {exc}") from exc

    expiry = None
    if payload.expires_in:
        expiry = token_module.now() + timedelta(seconds=payload.expires_in)

    return Token(
        access_token=payload.access_token,
        token_type=payload.token_type,
        refresh_token=payload.refresh_token,
        expiry=expiry,
        raw=JSONFields(dict(data)),
    )
