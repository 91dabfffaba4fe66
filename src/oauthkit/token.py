"""The :class:`Token` entity returned by every grant.

A token is produced once by :func:`~oauthkit.response.parse_response` and
is never mutated afterwards; :meth:`Token.with_extra` and
:func:`dataclasses.replace` hand out modified copies instead.

Provider-specific fields that do not map onto the standard attributes are
kept in :attr:`Token.raw` as one of two tagged shapes:

- :class:`JSONFields` -- the decoded JSON object of a JSON response.
- :class:`FormFields` -- the multi-valued parameter set of a form-encoded
  (or ``text/plain``) response.

:meth:`Token.extra` reads from either shape.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, MutableMapping, Optional, Union

from oauthkit.values import Values, get_value

EXPIRY_DELTA = timedelta(seconds=10)
"""How much earlier than :attr:`Token.expiry` a token is treated as expired.

Absorbs clock skew between the client and the authorization server.
"""

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


def now() -> datetime:
    """Return the current UTC time; patched in tests to pin the clock."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class JSONFields:
    """Extra fields captured from a JSON token response."""

    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FormFields:
    """Extra fields captured from a form-encoded token response."""

    values: Values = field(default_factory=dict)


RawFields = Union[JSONFields, FormFields]


@dataclass(frozen=True)
class Token:
    """Credentials used to authorize requests against a protected resource.

    Attributes:
        access_token: The token that authorizes and authenticates requests.
        token_type: Type as sent by the provider; see :meth:`type` for the
            normalised form.
        refresh_token: Token used to obtain a new access token once this
            one expires. May be empty.
        expiry: Absolute expiry time (timezone-aware). ``None`` means the
            token never expires.
        raw: Extra provider fields, see :class:`JSONFields` and
            :class:`FormFields`.
    """

    access_token: str = ""
    token_type: str = ""
    refresh_token: str = ""
    expiry: Optional[datetime] = None
    raw: Optional[RawFields] = None

    def type(self) -> str:
        """Return the normalised token type, defaulting to ``"Bearer"``."""
        lowered = self.token_type.lower()
        if lowered == "bearer":
            return "Bearer"
        if lowered == "mac":
            return "MAC"
        if lowered == "basic":
            return "Basic"
        if self.token_type:
            return self.token_type
        return "Bearer"

    def is_expired(self) -> bool:
        """Report whether the token is past its expiry, minus :data:`EXPIRY_DELTA`.

        A token without an expiry never expires.
        """
        if self.expiry is None:
            return False
        return self.expiry - EXPIRY_DELTA < now()

    def valid(self) -> bool:
        """Report whether the token has an access token and is not expired."""
        return bool(self.access_token) and not self.is_expired()

    def extra(self, key: str) -> Any:
        """Return an extra field returned by the server alongside the token.

        For JSON responses the decoded value is returned as is (``None`` if
        absent). For form-encoded responses the value is a string, so
        numeric-looking values are converted: no ``.`` parses as ``int``,
        exactly one ``.`` parses as ``float``. Anything else, or a value
        that fails to parse, is returned as the original string.

        Args:
            key: Name of the response field.

        Returns:
            The field value, or ``None`` when the token carries no extra
            fields.
        """
        raw = self.raw
        if isinstance(raw, JSONFields):
            return raw.fields.get(key)
        if isinstance(raw, FormFields):
            value = get_value(raw.values, key)
            stripped = value.strip()
            dots = stripped.count(".")
            if dots == 0 and _INTEGER.fullmatch(stripped):
                number = int(stripped)
                if _INT64_MIN <= number <= _INT64_MAX:
                    return number
            elif dots == 1 and "_" not in stripped:
                try:
                    return float(stripped)
                except ValueError:
                    pass
            return value
        return None

    def with_extra(self, raw: Optional[RawFields]) -> Token:
        """Return a copy of this token carrying *raw* as its extra fields."""
        return replace(self, raw=raw)

    def set_auth_header(self, headers: MutableMapping[str, str]) -> None:
        """Set the ``Authorization`` header on *headers* from this token."""
        headers["Authorization"] = f"{self.type()} {self.access_token}"
