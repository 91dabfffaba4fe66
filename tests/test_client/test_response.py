"""Tests for token endpoint response parsing."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from oauthkit.exceptions import (
    MissingAccessTokenError,
    ResponseParseError,
    TokenRetrieveError,
)
from oauthkit.response import (
    MAX_BODY_BYTES,
    TokenPayload,
    media_type,
    parse_response,
    read_body,
)
from oauthkit.token import FormFields, JSONFields


NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _frozen_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("oauthkit.token.now", lambda: NOW)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_response(
    body: bytes | str,
    content_type: str | None = "application/json",
    status_code: int = 200,
) -> httpx.Response:
    """Build an unread, streamed httpx.Response."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    headers = {"content-type": content_type} if content_type else {}
    return httpx.Response(
        status_code=status_code,
        headers=headers,
        stream=httpx.ByteStream(body),
        request=httpx.Request("POST", "https://provider.test/token"),
    )


def _json_response(data: object, status_code: int = 200) -> httpx.Response:
    return _make_response(json.dumps(data), status_code=status_code)


# ---------------------------------------------------------------------------
# Form-encoded bodies
# ---------------------------------------------------------------------------


class TestFormBodies:
    def test_github_style_response(self) -> None:
        response = _make_response(
            "access_token=90d64460d14870c08c81352a05dedd3465940a7c"
            "&scope=user&token_type=bearer",
            content_type="application/x-www-form-urlencoded; charset=utf-8",
        )
        token = parse_response(response)
        assert token.access_token == "90d64460d14870c08c81352a05dedd3465940a7c"
        assert token.token_type == "bearer"
        assert token.type() == "Bearer"
        assert token.refresh_token == ""
        assert token.expiry is None
        assert isinstance(token.raw, FormFields)
        assert token.extra("scope") == "user"

    def test_text_plain_is_form(self) -> None:
        response = _make_response(
            "access_token=abc&refresh_token=def", content_type="text/plain"
        )
        token = parse_response(response)
        assert token.access_token == "abc"
        assert token.refresh_token == "def"

    def test_expires_in_sets_expiry(self) -> None:
        response = _make_response(
            "access_token=abc&expires_in=3600",
            content_type="application/x-www-form-urlencoded",
        )
        assert parse_response(response).expiry == NOW + timedelta(seconds=3600)

    @pytest.mark.parametrize(
        "expires_in",
        [
            "zzz",
            "86400.92",
            "",
            "0",
            "%203600",
            "3_600",
            "%D9%A3%D9%A6",
            "99999999999999999999",
        ],
    )
    def test_unusable_expires_in_means_no_expiry(self, expires_in: str) -> None:
        response = _make_response(
            f"access_token=abc&expires_in={expires_in}",
            content_type="application/x-www-form-urlencoded",
        )
        assert parse_response(response).expiry is None

    @pytest.mark.parametrize(
        ("expires_in", "seconds"),
        [
            ("+60", 60),
            ("-60", -60),
            ("99999999999999", 2**31 - 1),
            ("-99999999999999", -(2**31)),
        ],
    )
    def test_expires_in_clamped_to_int32(self, expires_in: str, seconds: int) -> None:
        response = _make_response(
            f"access_token=abc&expires_in={expires_in.replace('+', '%2B')}",
            content_type="application/x-www-form-urlencoded",
        )
        assert parse_response(response).expiry == NOW + timedelta(seconds=seconds)

    def test_malformed_body(self) -> None:
        response = _make_response(
            "access_token=%zz", content_type="application/x-www-form-urlencoded"
        )
        with pytest.raises(ResponseParseError):
            parse_response(response)

    def test_missing_access_token(self) -> None:
        response = _make_response(
            "scope=user", content_type="application/x-www-form-urlencoded"
        )
        with pytest.raises(MissingAccessTokenError, match="missing access_token"):
            parse_response(response)

    def test_numeric_extras(self) -> None:
        response = _make_response(
            "access_token=abc&expires_in=86400.92&request_id=86400",
            content_type="application/x-www-form-urlencoded",
        )
        token = parse_response(response)
        assert token.extra("expires_in") == 86400.92
        assert token.extra("request_id") == 86400


# ---------------------------------------------------------------------------
# JSON bodies
# ---------------------------------------------------------------------------


class TestJSONBodies:
    def test_full_response(self) -> None:
        token = parse_response(
            _json_response(
                {
                    "access_token": "90d64460d14870c08c81352a05dedd3465940a7c",
                    "token_type": "bearer",
                    "refresh_token": "r1",
                    "expires_in": 86400,
                    "scope": "user",
                }
            )
        )
        assert token.access_token == "90d64460d14870c08c81352a05dedd3465940a7c"
        assert token.type() == "Bearer"
        assert token.refresh_token == "r1"
        assert token.expiry == NOW + timedelta(seconds=86400)
        assert token.valid() is True
        assert isinstance(token.raw, JSONFields)
        assert token.extra("scope") == "user"
        assert token.extra("expires_in") == 86400

    def test_no_content_type_defaults_to_json(self) -> None:
        response = _make_response('{"access_token": "abc"}', content_type=None)
        assert parse_response(response).access_token == "abc"

    def test_content_type_parameters_and_case(self) -> None:
        response = _make_response(
            '{"access_token": "abc"}', content_type="Application/JSON; charset=utf-8"
        )
        assert parse_response(response).access_token == "abc"

    @pytest.mark.parametrize(
        ("expires_in", "expected"),
        [
            (86400, timedelta(seconds=86400)),
            ("86400", timedelta(seconds=86400)),
            ("-60", timedelta(seconds=-60)),
            (None, None),
        ],
    )
    def test_expires_in_accepted(self, expires_in: object, expected: timedelta | None) -> None:
        token = parse_response(
            _json_response({"access_token": "abc", "expires_in": expires_in})
        )
        if expected is None:
            assert token.expiry is None
        else:
            assert token.expiry == NOW + expected

    def test_expires_in_absent(self) -> None:
        token = parse_response(_json_response({"access_token": "abc"}))
        assert token.expiry is None
        assert token.valid() is True

    @pytest.mark.parametrize(
        "expires_in",
        [False, True, {}, [], "zzz", 86400.5, 86400.0, 1e3, " 60 ", "3_600", 2**63],
    )
    def test_expires_in_rejected(self, expires_in: object) -> None:
        with pytest.raises(ResponseParseError):
            parse_response(
                _json_response({"access_token": "abc", "expires_in": expires_in})
            )

    def test_expires_in_clamped(self) -> None:
        token = parse_response(
            _json_response({"access_token": "abc", "expires_in": 2**40})
        )
        assert token.expiry == NOW + timedelta(seconds=2**31 - 1)

    @pytest.mark.parametrize("expires_in", [-99999999999999, "-99999999999999"])
    def test_negative_expires_in_clamped(self, expires_in: object) -> None:
        token = parse_response(
            _json_response({"access_token": "abc", "expires_in": expires_in})
        )
        assert token.expiry == NOW - timedelta(seconds=2**31)
        assert token.valid() is False

    def test_non_string_access_token(self) -> None:
        with pytest.raises(ResponseParseError):
            parse_response(_json_response({"access_token": 123, "scope": "user"}))

    def test_missing_access_token(self) -> None:
        with pytest.raises(MissingAccessTokenError) as exc_info:
            parse_response(_json_response({"scope": "user"}))
        assert str(exc_info.value) == "oauth2: server response missing access_token"

    def test_invalid_json(self) -> None:
        with pytest.raises(ResponseParseError, match="cannot parse token response"):
            parse_response(_make_response("{not json"))

    def test_non_object_json(self) -> None:
        with pytest.raises(ResponseParseError):
            parse_response(_make_response('["access_token"]'))


class TestTokenPayload:
    def test_ignores_unknown_fields(self) -> None:
        payload = TokenPayload.model_validate({"access_token": "abc", "id_token": "x"})
        assert payload.access_token == "abc"
        assert payload.expires_in == 0

    def test_string_expires_in(self) -> None:
        payload = TokenPayload.model_validate({"expires_in": "60"})
        assert payload.expires_in == 60


# ---------------------------------------------------------------------------
# Status handling
# ---------------------------------------------------------------------------


class TestErrorStatus:
    def test_bad_request_message(self) -> None:
        response = _make_response('{"error": "invalid_grant"}', status_code=400)
        with pytest.raises(TokenRetrieveError) as exc_info:
            parse_response(response)
        err = exc_info.value
        assert err.status_code == 400
        assert err.reason == "Bad Request"
        assert err.body == '{"error": "invalid_grant"}'
        assert str(err) == (
            "oauth2: cannot fetch token: 400 Bad Request\n"
            'Response: {"error": "invalid_grant"}'
        )

    @pytest.mark.parametrize("status_code", [199, 300, 401, 500])
    def test_non_2xx_rejected_even_with_token(self, status_code: int) -> None:
        response = _make_response('{"access_token": "abc"}', status_code=status_code)
        with pytest.raises(TokenRetrieveError):
            parse_response(response)

    @pytest.mark.parametrize("status_code", [200, 201, 299])
    def test_2xx_accepted(self, status_code: int) -> None:
        response = _make_response('{"access_token": "abc"}', status_code=status_code)
        assert parse_response(response).access_token == "abc"


# ---------------------------------------------------------------------------
# Body reading
# ---------------------------------------------------------------------------


class TestReadBody:
    def test_response_closed_on_success(self) -> None:
        response = _json_response({"access_token": "abc"})
        parse_response(response)
        assert response.is_closed

    def test_response_closed_on_error(self) -> None:
        response = _json_response({"error": "boom"}, status_code=500)
        with pytest.raises(TokenRetrieveError):
            parse_response(response)
        assert response.is_closed

    def test_body_capped(self) -> None:
        response = _make_response(b"x" * (MAX_BODY_BYTES + 1024), status_code=400)
        with pytest.raises(TokenRetrieveError) as exc_info:
            parse_response(response)
        assert len(exc_info.value.body) == MAX_BODY_BYTES

    def test_custom_limit(self) -> None:
        assert read_body(_make_response(b"abcdef"), limit=3) == b"abc"

    def test_media_type(self) -> None:
        response = _make_response(b"", content_type=" Text/Plain ; charset=utf-8")
        assert media_type(response) == "text/plain"
