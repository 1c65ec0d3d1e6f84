"""
Unit tests for failure classification.
"""

import time

import httpx
import pytest

from run_purge.errors import (
    CircuitOpenError,
    ErrorKind,
    RemoteCallError,
    classify,
)


@pytest.mark.parametrize("status", [400, 401, 404, 410, 422])
def test_client_errors(status):
    c = classify(RemoteCallError(status, "nope"))
    assert c.kind is ErrorKind.CLIENT_ERROR
    assert c.status_code == status
    assert not c.retryable


@pytest.mark.parametrize("status", [500, 502, 503, 599])
def test_server_errors(status):
    c = classify(RemoteCallError(status, "boom"))
    assert c.kind is ErrorKind.SERVER_ERROR
    assert c.retryable


def test_429_is_rate_limited_with_hint():
    c = classify(RemoteCallError(429, "slow down", retry_after_seconds=12))
    assert c.kind is ErrorKind.RATE_LIMITED
    assert c.retry_after_seconds == 12


def test_plain_403_is_client_error():
    c = classify(RemoteCallError(403, "Resource not accessible by integration"))
    assert c.kind is ErrorKind.CLIENT_ERROR


def test_403_with_exhausted_quota_is_rate_limited():
    c = classify(RemoteCallError(403, "Forbidden", rate_limit_remaining=0))
    assert c.kind is ErrorKind.RATE_LIMITED


def test_403_with_rate_limit_message_is_rate_limited():
    c = classify(RemoteCallError(403, "You have exceeded a secondary rate limit"))
    assert c.kind is ErrorKind.RATE_LIMITED


def test_message_alone_signals_rate_limit():
    assert classify(Exception("API rate limit exceeded")).kind is ErrorKind.RATE_LIMITED


def test_transport_errors_are_network_errors():
    assert classify(httpx.ConnectError("refused")).kind is ErrorKind.NETWORK_ERROR
    assert classify(httpx.ReadTimeout("slow")).kind is ErrorKind.NETWORK_ERROR
    assert classify(ConnectionResetError()).kind is ErrorKind.NETWORK_ERROR
    assert classify(Exception("socket hang up: ECONNRESET")).kind is ErrorKind.NETWORK_ERROR


def test_unrecognized_failure_defaults_to_server_error():
    c = classify(Exception("something odd"))
    assert c.kind is ErrorKind.SERVER_ERROR
    assert c.status_code is None
    assert c.retryable


def test_default_bucket_override():
    c = classify(Exception("something odd"), default=ErrorKind.CLIENT_ERROR)
    assert c.kind is ErrorKind.CLIENT_ERROR


def test_unexpected_status_uses_default_bucket():
    assert classify(RemoteCallError(302, "moved")).kind is ErrorKind.SERVER_ERROR


def test_from_response_reads_message_and_retry_after():
    resp = httpx.Response(429, json={"message": "slow down"}, headers={"retry-after": "7"})
    err = RemoteCallError.from_response(resp)
    assert err.status_code == 429
    assert err.message == "slow down"
    assert err.retry_after_seconds == 7.0
    assert "HTTP 429" in str(err)


def test_from_response_uses_reset_when_quota_exhausted():
    reset = int(time.time()) + 30
    resp = httpx.Response(
        403,
        json={"message": "API rate limit exceeded"},
        headers={"x-ratelimit-remaining": "0", "x-ratelimit-reset": str(reset)},
    )
    err = RemoteCallError.from_response(resp)
    assert err.rate_limit_remaining == 0
    assert 0 < err.retry_after_seconds <= 31
    assert classify(err).kind is ErrorKind.RATE_LIMITED


def test_from_response_ignores_reset_in_the_past():
    reset = int(time.time()) - 5
    resp = httpx.Response(
        403,
        json={"message": "API rate limit exceeded"},
        headers={"x-ratelimit-remaining": "0", "x-ratelimit-reset": str(reset)},
    )
    err = RemoteCallError.from_response(resp)
    assert err.retry_after_seconds is None
    assert classify(err).kind is ErrorKind.RATE_LIMITED


def test_from_response_non_json_body():
    err = RemoteCallError.from_response(httpx.Response(502, text="<html>Bad gateway</html>"))
    assert err.message == "<html>Bad gateway</html>"
    assert classify(err).kind is ErrorKind.SERVER_ERROR


def test_circuit_open_error_message():
    err = CircuitOpenError("open", "delete run #7")
    assert str(err) == "Circuit breaker is open - skipping delete run #7"
