"""
Test the requests-backed transport.
"""

import threading
import time
from unittest.mock import Mock

import pytest
import requests

from zoho_client.recovery.retry import RetryEngine, RetryPolicy
from zoho_client.runtime.errors import NetworkErrorKind, TransportError
from zoho_client.transport import http
from zoho_client.transport.http import (
    HttpResult, RequestsTransport, classify_exception, default_transport, parse_body,
    set_default_transport,
)


@pytest.mark.parametrize("exc,kind", [
    (requests.exceptions.ConnectTimeout("connect timed out"), NetworkErrorKind.TIMEOUT),
    (requests.exceptions.ReadTimeout("read timed out"), NetworkErrorKind.TIMEOUT),
    (requests.exceptions.ConnectionError("Failed to resolve 'www.zohoapis.xx'"), NetworkErrorKind.NXDOMAIN),
    (requests.exceptions.ConnectionError("[Errno 111] Connection refused"), NetworkErrorKind.ECONNREFUSED),
    (requests.exceptions.ConnectionError("[Errno 113] No route to host"), NetworkErrorKind.EHOSTUNREACH),
    (requests.exceptions.ConnectionError("Connection aborted."), NetworkErrorKind.CLOSED),
    (requests.exceptions.ChunkedEncodingError("incomplete"), NetworkErrorKind.CLOSED),
    (requests.exceptions.ContentDecodingError("incorrect header check"), NetworkErrorKind.CLOSED),
    (requests.exceptions.InvalidURL("bad url"), NetworkErrorKind.UNKNOWN),
])
def test_classify_exception(exc, kind):
    assert classify_exception(exc) is kind


@pytest.mark.parametrize("raw,expected", [
    (b'{"data": [1]}', {"data": [1]}),
    (b"[1, 2]", [1, 2]),
    (b"plain text", "plain text"),
    (b"", ""),
    (None, ""),
    ("{\"a\": 1}", {"a": 1}),
])
def test_parse_body(raw, expected):
    assert parse_body(raw) == expected


def test_http_result_ok():
    assert HttpResult(200).ok
    assert HttpResult(204).ok
    assert not HttpResult(301).ok
    assert not HttpResult(401).ok


def _session(status=200, content=b'{"data": []}', headers=None):
    session = Mock(spec=requests.Session)
    session.request.return_value = Mock(status_code=status, content=content, headers=headers or {})
    return session


class TestRequestsTransport:
    """Transport wrapping a requests session."""

    def test_perform(self):
        session = _session(headers={"X-RateLimit-Remaining": "99"})
        transport = RequestsTransport(session=session)

        result = transport.perform("POST", "https://www.zohoapis.in/crm/v8/Leads", b'{"data":[]}',
                                   {"Content-Type": "application/json"}, 5, 10)

        assert result == HttpResult(200, {"data": []}, {"X-RateLimit-Remaining": "99"})
        session.request.assert_called_once_with(
            "POST",
            "https://www.zohoapis.in/crm/v8/Leads",
            data=b'{"data":[]}',
            headers={"Content-Type": "application/json"},
            timeout=(5, 10),
            verify=True,
        )

    def test_empty_body_and_default_timeout(self):
        session = _session()
        transport = RequestsTransport(session=session, default_timeout=12)

        transport.perform("GET", "https://desk.zoho.in/api/v1/tickets", b"", {})

        kwargs = session.request.call_args.kwargs
        assert kwargs["data"] is None
        assert kwargs["timeout"] == (12, 12)

    def test_error_status_is_a_result(self):
        transport = RequestsTransport(session=_session(status=404, content=b'{"code": "INVALID_URL_PATTERN"}'))

        result = transport.perform("GET", "https://www.zohoapis.in/crm/v8/Nope", b"", {})

        assert result.status_code == 404
        assert result.body == {"code": "INVALID_URL_PATTERN"}

    def test_exception_becomes_transport_error(self):
        session = _session()
        cause = requests.exceptions.ReadTimeout("read timed out")
        session.request.side_effect = cause
        transport = RequestsTransport(session=session)

        with pytest.raises(TransportError) as exc_info:
            transport.perform("GET", "https://www.zohoapis.in/crm/v8/Leads", b"", {})

        assert exc_info.value.kind is NetworkErrorKind.TIMEOUT
        assert exc_info.value.cause is cause
        assert exc_info.value.details["url"] == "https://www.zohoapis.in/crm/v8/Leads"

    def test_corrupt_response_is_retried(self):
        session = _session()
        session.request.side_effect = [
            requests.exceptions.ContentDecodingError("incorrect header check"),
            Mock(status_code=200, content=b'{"data": []}', headers={}),
        ]
        transport = RequestsTransport(session=session)
        engine = RetryEngine(RetryPolicy(jitter=False), sleep=lambda seconds: None)

        result = engine.execute(lambda: transport.perform("GET", "https://www.zohoapis.in/crm/v8/Leads", b"", {}))

        assert result.status_code == 200
        assert session.request.call_count == 2

    def test_close(self):
        session = _session()
        RequestsTransport(session=session).close()
        session.close.assert_called_once_with()


def test_default_transport_singleton():
    first = default_transport()
    assert isinstance(first, RequestsTransport)
    assert default_transport() is first

    replacement = RequestsTransport(session=_session())
    set_default_transport(replacement)
    assert default_transport() is replacement


def test_default_transport_created_once_across_threads(monkeypatch):
    created = []

    def slow_transport():
        time.sleep(0.05)
        transport = RequestsTransport(session=_session())
        created.append(transport)
        return transport

    monkeypatch.setattr(http, "RequestsTransport", slow_transport)
    barrier = threading.Barrier(8)
    seen = []

    def worker():
        barrier.wait()
        seen.append(default_transport())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert len(created) == 1
    assert all(t is created[0] for t in seen)
    assert len(seen) == 8
