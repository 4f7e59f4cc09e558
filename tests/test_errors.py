import httpx
import pytest
from kong_admin.core.errors import (
    KongAPIError,
    KongClientError,
    KongInvalidArgumentError,
    TooManyRequestsDetails,
    api_error_from,
    error_or_response_error,
    is_forbidden,
    is_not_found,
    is_success,
)
from kong_admin.core.response import KongResponse


def test_api_error_message_and_str():
    err = api_error_from(404, httpx.Headers(), b'{"message":"Not found"}')
    assert err.code == 404
    assert err.status_code == 404
    assert err.message == "Not found"
    assert str(err) == 'HTTP status 404 (message: "Not found")'
    assert err.raw == b'{"message":"Not found"}'


def test_api_error_details_from_body():
    body = b'{"message":"schema violation","fields":{"host":"required"},"details":["x"]}'
    err = api_error_from(400, httpx.Headers(), body)
    assert err.details == ["x"]
    assert "details" in str(err)


def test_api_error_unparseable_body_keeps_raw():
    err = api_error_from(502, httpx.Headers(), b"<html>bad gateway</html>")
    assert err.message.startswith("<failed to parse response body")
    assert err.raw == b"<html>bad gateway</html>"


def test_retry_after_on_429():
    headers = httpx.Headers({"Retry-After": "7"})
    err = api_error_from(429, headers, b'{"message":"API rate limit exceeded"}')
    assert err.details == TooManyRequestsDetails(retry_after=7.0)


def test_retry_after_ignored_when_not_numeric():
    headers = httpx.Headers({"Retry-After": "soon"})
    err = api_error_from(429, headers, b"{}")
    assert err.details is None


def test_predicates_walk_the_cause_chain():
    inner = KongAPIError(404, "Not found")
    try:
        try:
            raise inner
        except KongAPIError as exc:
            raise RuntimeError("lookup failed") from exc
    except RuntimeError as outer:
        assert is_not_found(outer)
        assert not is_forbidden(outer)

    assert is_forbidden(KongAPIError(403, "nope"))
    assert not is_not_found(ValueError("x"))
    assert not is_not_found(None)


def test_invalid_argument_is_value_error():
    err = KongInvalidArgumentError("id cannot be empty")
    assert isinstance(err, ValueError)
    assert isinstance(err, KongClientError)


@pytest.mark.parametrize(
    "code,ok", [(199, False), (200, True), (204, True), (399, True), (400, False)]
)
def test_is_success_range(code, ok):
    assert is_success(code) is ok


def test_error_or_response_error():
    ok = KongResponse(200, "OK", httpx.Headers(), "http://kong/")
    error_or_response_error(ok)
    error_or_response_error(None)

    bad = KongResponse(500, "Internal Server Error", httpx.Headers(), "http://kong/")
    with pytest.raises(KongClientError):
        error_or_response_error(bad)
