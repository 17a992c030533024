"""
Test the client's retry, token refresh and rate limiting orchestration.
"""

import sys
import threading
import time
from pathlib import Path
from unittest.mock import Mock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
from helpers import MockRefresher, MockTransport, mk_client, mk_input, network_error, refresh_failure

from zoho_client.auth.token_cache import default_token_cache
from zoho_client.client import ZohoClient, default_client, set_default_client
from zoho_client.config import ClientSettings, Service
from zoho_client.recovery.rate_limiter import RateLimiter
from zoho_client.regions import Region
from zoho_client.request import Request
from zoho_client.runtime.errors import (
    AuthenticationError, RequestSealedError, ServerError, TokenRefreshError, TransportError,
)
from zoho_client.transport.http import HttpResult, RequestsTransport, Transport, default_transport


UNAUTHORIZED = HttpResult(401, {"code": "INVALID_TOKEN", "message": "invalid oauth token"})


def _leads(token="old_token", api_type="crm"):
    return (Request(api_type)
            .set_access_token(token)
            .with_method("GET")
            .with_path("Leads"))


class TestSend:
    """Plain sends with retry."""

    def test_success(self, client, transport):
        transport.add(HttpResult(200, {"data": [{"id": "1"}]}))

        assert client.send(_leads(), mk_input()) == {"data": [{"id": "1"}]}
        assert transport.call_count == 1
        assert transport.last_call["url"] == "https://www.zohoapis.in/crm/v8/Leads"

    def test_input_optional(self, client, transport):
        assert client.send(_leads()) == {"data": []}

    def test_retries_transient_failures(self, client, transport):
        transport.set_failures(2)

        assert client.send(_leads(), mk_input()) == {"data": []}
        assert transport.call_count == 3
        assert client.retry_engine._sleep.delays == [1.0, 2.0]

    def test_exhausted_retries_raise_server_error(self, client, transport):
        transport.set_failures(4)

        with pytest.raises(ServerError) as exc_info:
            client.send(_leads(), mk_input())

        assert exc_info.value.status_code == 503
        assert transport.call_count == 4

    def test_send_raw_returns_failures(self, client, transport):
        transport.set_failures(4, status_code=500)

        result = client.send_raw(_leads(), mk_input())

        assert result.status_code == 500
        assert transport.call_count == 4

    def test_transport_errors_propagate_after_retries(self, client, transport):
        transport.add(*[network_error() for _ in range(4)])

        with pytest.raises(TransportError):
            client.send(_leads(), mk_input())
        assert transport.call_count == 4

    def test_retry_opts_override(self, client, transport):
        transport.set_failures(3)

        with pytest.raises(ServerError):
            client.send(_leads(), mk_input().with_retry_opts(max_retries=0))
        assert transport.call_count == 1

    def test_retry_disabled_per_call(self, client, transport):
        transport.set_failures(3)

        with pytest.raises(ServerError):
            client.send(_leads(), mk_input().with_retry_opts(enabled=False))
        assert transport.call_count == 1

    def test_request_sealed_after_send(self, client):
        req = _leads()
        client.send(req, mk_input())

        with pytest.raises(RequestSealedError):
            req.with_path("Contacts")


class TestTokenRefresh:
    """401 handling."""

    def test_401_refreshes_and_resends(self, client, transport, refresher):
        transport.add(UNAUTHORIZED)
        input = mk_input("old_token", refresh_token="1000.rt")

        assert client.send(_leads(), input) == {"data": []}

        assert refresher.calls == [(Service.CRM, "1000.rt", Region.IN)]
        assert transport.call_count == 2
        assert transport.calls[0]["headers"]["Authorization"] == "Zoho-oauthtoken old_token"
        assert transport.calls[1]["headers"]["Authorization"] == "Zoho-oauthtoken new_token"
        assert transport.calls[1]["url"] == transport.calls[0]["url"]

    def test_refreshed_token_cached(self, client, transport):
        transport.add(UNAUTHORIZED)
        client.send(_leads(), mk_input(refresh_token="rt"))

        assert client.token_cache.get_token("crm") == "new_token"

    def test_401_without_refresh_token(self, client, transport, refresher):
        transport.add(UNAUTHORIZED)

        with pytest.raises(AuthenticationError) as exc_info:
            client.send(_leads(), mk_input())

        assert exc_info.value.details["vendor_code"] == "INVALID_TOKEN"
        assert refresher.call_count == 0
        assert transport.call_count == 1

    def test_401_is_not_retried_by_policy(self, client, transport):
        transport.add(UNAUTHORIZED)

        result = client.send_raw(_leads(), mk_input())

        assert result.status_code == 401
        assert client.retry_engine._sleep.delays == []

    def test_second_401_is_final(self, client, transport, refresher):
        transport.add(UNAUTHORIZED, UNAUTHORIZED)

        with pytest.raises(AuthenticationError):
            client.send(_leads(), mk_input(refresh_token="rt"))

        assert refresher.call_count == 1
        assert transport.call_count == 2

    def test_resend_is_retried(self, client, transport):
        transport.add(UNAUTHORIZED, HttpResult(503, {}), HttpResult(200, {"data": ["ok"]}))

        assert client.send(_leads(), mk_input(refresh_token="rt")) == {"data": ["ok"]}
        assert transport.call_count == 3

    def test_refresh_failure(self, transport):
        refresher = MockRefresher(error=refresh_failure())
        client = mk_client(transport, refresher)
        transport.add(UNAUTHORIZED)

        with pytest.raises(TokenRefreshError):
            client.send(_leads(), mk_input(refresh_token="rt"))
        assert transport.call_count == 1

    def test_callback_receives_new_token(self, client, transport):
        transport.add(UNAUTHORIZED)
        received = []

        client.send(_leads(), mk_input(refresh_token="rt", on_token_refresh=received.append))

        assert received == ["new_token"]

    def test_callback_failure_ignored(self, client, transport):
        transport.add(UNAUTHORIZED)

        def callback(token):
            raise RuntimeError("store unavailable")

        assert client.send(_leads(), mk_input(refresh_token="rt", on_token_refresh=callback)) == {"data": []}
        assert transport.call_count == 2

    @pytest.mark.parametrize("api_type,service", [
        ("desk", Service.DESK),
        ("bulk", Service.CRM),
        ("recruit_bulk", Service.RECRUIT),
        ("portal", Service.PROJECTS),
        ("cliq", Service.CLIQ),
    ])
    def test_refresh_uses_request_service(self, client, transport, refresher, api_type, service):
        transport.add(UNAUTHORIZED)

        client.send(_leads(api_type=api_type), mk_input(refresh_token="rt", region="eu"))

        assert refresher.calls == [(service, "rt", Region.EU)]

    def test_concurrent_401s_share_one_refresh(self):
        """Concurrent calls rejected with the same stale token refresh once."""

        class TokenAwareTransport(Transport):
            def __init__(self):
                self.calls = 0
                self.lock = threading.Lock()

            def perform(self, method, url, body, headers, timeout=None, recv_timeout=None):
                with self.lock:
                    self.calls += 1
                if headers["Authorization"] == "Zoho-oauthtoken new_token":
                    return HttpResult(200, {"data": []})
                return UNAUTHORIZED

        gate = threading.Event()
        refresher = MockRefresher(gate=gate)
        transport = TokenAwareTransport()
        client = mk_client(transport, refresher)
        barrier = threading.Barrier(10)
        results = []

        def worker():
            barrier.wait()
            results.append(client.send(_leads(), mk_input(refresh_token="rt")))

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        assert refresher.started.wait(5)
        time.sleep(0.2)
        gate.set()
        for t in threads:
            t.join(5)

        assert refresher.call_count == 1
        assert results == [{"data": []}] * 10
        assert transport.calls == 20


class TestRateLimiting:
    """Rate limiter integration."""

    def _limiter(self):
        limiter = Mock(spec=RateLimiter)
        limiter.execute.side_effect = lambda action, **opts: action()
        return limiter

    def test_call_wrapped_with_options(self, transport):
        limiter = self._limiter()
        client = ZohoClient(transport=transport, rate_limiter=limiter)

        client.send(_leads(), mk_input().with_rate_limit_opts(key="zoho:bulk"))

        limiter.execute.assert_called_once()
        assert limiter.execute.call_args.kwargs == {"key": "zoho:bulk"}

    def test_refresh_happens_inside_one_admission(self, transport, refresher):
        limiter = self._limiter()
        client = mk_client(transport, refresher)
        client.rate_limiter = limiter
        transport.add(UNAUTHORIZED)

        client.send(_leads(), mk_input(refresh_token="rt"))

        assert limiter.execute.call_count == 1
        assert transport.call_count == 2

    def test_send_without_rate_limit(self, transport):
        limiter = self._limiter()
        client = ZohoClient(transport=transport, rate_limiter=limiter)

        assert client.send_without_rate_limit(_leads(), mk_input()) == {"data": []}
        limiter.execute.assert_not_called()


def test_default_client_singleton(monkeypatch):
    monkeypatch.setenv("ZOHO_RETRY_MAX_RETRIES", "7")

    client = default_client()

    assert default_client() is client
    assert client.retry_policy.max_retries == 7

    replacement = mk_client()
    set_default_client(replacement)
    assert default_client() is replacement


class TestSettingsDefaults:
    """Collaborators built from client settings."""

    def test_settings_build_owned_collaborators(self):
        settings = ClientSettings(http_timeout=5.0, token_ttl_seconds=10, token_refresh_timeout=2.0)

        client = ZohoClient(settings=settings)

        assert isinstance(client.transport, RequestsTransport)
        assert client.transport.default_timeout == 5.0
        assert client.token_cache.ttl_seconds == 10
        assert client.token_cache.refresh_timeout == 2.0
        assert client.token_cache is not default_token_cache()

    def test_injected_collaborators_win(self, transport):
        client = mk_client(transport)
        cache = client.token_cache

        client = ZohoClient(transport=transport, token_cache=cache, settings=ClientSettings(http_timeout=5.0))

        assert client.transport is transport
        assert client.token_cache is cache

    def test_without_settings_uses_shared_defaults(self):
        client = ZohoClient()

        assert client.transport is default_transport()
        assert client.token_cache is default_token_cache()

    def test_default_client_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ZOHO_HTTP_TIMEOUT", "7.5")
        monkeypatch.setenv("ZOHO_TOKEN_TTL_SECONDS", "900")

        client = default_client()

        assert client.transport.default_timeout == 7.5
        assert client.token_cache.ttl_seconds == 900
