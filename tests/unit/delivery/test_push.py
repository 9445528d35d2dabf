"""
Module: test_push.py
Description: Unit tests for HttpTransport.

Uses httpx.MockTransport so requests never leave the process. Covers
status passthrough, header parsing, reply capture and the status 0
reported for transport-level failures, with and without retries.
"""

import io

import httpx
import pytest

from eventrelay.delivery.push import TRANSPORT_FAILURE, HttpTransport, is_success, parse_headers


def make_transport(handler, **kwargs):
    kwargs.setdefault("attempts", 1)
    kwargs.setdefault("max_wait", 0)
    return HttpTransport(timeout_seconds=5, http_transport=httpx.MockTransport(handler), **kwargs)


class TestHttpTransport:
    """Test cases for HttpTransport.post."""

    def test_returns_status_code(self):
        """Test the collector's status code is returned as is."""
        transport = make_transport(lambda request: httpx.Response(202))

        assert transport.post("https://collector.test/e", "x", []) == 202

    def test_non_2xx_is_returned_not_raised(self):
        """Test error statuses come back as numbers."""
        transport = make_transport(lambda request: httpx.Response(503, text="busy"))

        assert transport.post("https://collector.test/e", "x", []) == 503

    def test_sends_payload_and_headers(self):
        """Test body and headers reach the collector unchanged."""
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = request.content.decode("utf-8")
            seen["auth"] = request.headers.get("Authorization")
            seen["type"] = request.headers.get("Content-Type")
            return httpx.Response(200)

        transport = make_transport(handler)
        transport.post(
            "https://collector.test/e",
            '{"a": "é"}',
            ["Content-Type: application/json", "Authorization: Bearer t0k:en"]
        )

        assert seen == {
            "method": "POST",
            "body": '{"a": "é"}',
            "auth": "Bearer t0k:en",
            "type": "application/json",
        }

    def test_default_headers_when_none(self):
        """Test default headers are used when headers is None."""
        seen = {}

        def handler(request):
            seen["agent"] = request.headers.get("X-Agent")
            return httpx.Response(200)

        transport = make_transport(handler, default_headers=["X-Agent: relay"])
        transport.post("https://collector.test/e", "x")

        assert seen["agent"] == "relay"

    def test_reply_capture(self):
        """Test the reply buffer is cleared and filled with the body."""
        transport = make_transport(lambda request: httpx.Response(200, text="accepted"))
        reply = io.StringIO("stale contents")

        transport.post("https://collector.test/e", "x", [], reply=reply)

        assert reply.getvalue() == "accepted"

    def test_network_error_returns_zero(self):
        """Test a refused connection reports status 0."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        transport = make_transport(handler)

        assert transport.post("https://collector.test/e", "x", []) == TRANSPORT_FAILURE

    def test_timeout_returns_zero(self):
        """Test a timeout reports status 0."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        transport = make_transport(handler)

        assert transport.post("https://collector.test/e", "x", []) == 0

    def test_unsupported_protocol_returns_zero(self):
        """Test other transport errors report status 0 without retrying."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.UnsupportedProtocol("unsupported scheme", request=request)

        transport = make_transport(handler, attempts=3)

        assert transport.post("https://collector.test/e", "x", []) == 0
        assert len(calls) == 1

    def test_connection_errors_are_retried(self):
        """Test connection-level errors are retried before giving up."""
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200)

        transport = make_transport(handler, attempts=3)

        assert transport.post("https://collector.test/e", "x", []) == 200
        assert len(calls) == 3

    def test_retries_exhausted(self):
        """Test status 0 once every attempt failed."""
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        transport = make_transport(handler, attempts=2)

        assert transport.post("https://collector.test/e", "x", []) == 0
        assert len(calls) == 2

    def test_http_errors_are_not_retried(self):
        """Test a 500 is final for the attempt."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        transport = make_transport(handler, attempts=3)

        assert transport.post("https://collector.test/e", "x", []) == 500
        assert len(calls) == 1

    def test_invalid_attempts(self):
        """Test attempts below one are rejected."""
        with pytest.raises(ValueError, match="attempts must be at least 1"):
            HttpTransport(attempts=0)


class TestHelpers:
    """Test cases for status classification and header parsing."""

    @pytest.mark.parametrize("status,expected", [
        (0, False), (199, False), (200, True), (204, True),
        (299, True), (300, False), (404, False), (500, False),
    ])
    def test_is_success(self, status, expected):
        """Test only 2xx counts as delivered."""
        assert is_success(status) is expected

    def test_parse_headers(self):
        """Test header lines split on the first colon, keeping order."""
        assert parse_headers(["A: 1", "B:2", "C: x: y"]) == [("A", "1"), ("B", "2"), ("C", "x: y")]

    def test_parse_headers_skips_malformed(self):
        """Test lines without a name or colon are dropped."""
        assert parse_headers(["no colon", ": empty name", "A: 1"]) == [("A", "1")]
