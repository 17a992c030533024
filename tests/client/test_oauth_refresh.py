"""
Test the OAuth refresh-token grant.
"""

import sys
from pathlib import Path
from urllib.parse import parse_qs

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
from helpers import MockTransport, mk_credentials, network_error

from zoho_client.auth.token import OAuthRefresher, build_refresh_request, oauth_url, refresh_access_token
from zoho_client.runtime.errors import ApiError, ConfigurationError, TokenRefreshError, TransportError
from zoho_client.transport.http import HttpResult


TOKEN_RESPONSE = {"access_token": "1000.access", "expires_in": 3600, "api_domain": "https://www.zohoapis.eu"}


def _form(call):
    return {k: v[0] for k, v in parse_qs(call["body"].decode("ascii")).items()}


@pytest.mark.parametrize("region,expected", [
    ("in", "https://accounts.zoho.in"),
    ("com", "https://accounts.zoho.com"),
    ("au", "https://accounts.zoho.com.au"),
    ("ca", "https://accounts.zohocloud.ca"),
])
def test_oauth_url(region, expected):
    assert oauth_url(region) == expected


def test_build_refresh_request():
    req = build_refresh_request("rt", "cid", "secret", "eu")

    assert req.method == "POST"
    assert req.render_url() == "https://accounts.zoho.eu/oauth/v2/token"
    assert req.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert "Authorization" not in req.headers


class TestRefreshAccessToken:
    """Token endpoint exchange."""

    def test_request_shape(self):
        transport = MockTransport(HttpResult(200, TOKEN_RESPONSE))

        body = refresh_access_token("1000.rt", service="desk", region="eu",
                                    credentials=mk_credentials(), transport=transport)

        assert body == TOKEN_RESPONSE
        call = transport.last_call
        assert call["method"] == "POST"
        assert call["url"] == "https://accounts.zoho.eu/oauth/v2/token"
        assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert _form(call) == {
            "client_id": "1000.CLIENTID",
            "client_secret": "secret",
            "refresh_token": "1000.rt",
            "grant_type": "refresh_token",
        }

    def test_region_defaults_to_service_config(self):
        transport = MockTransport(HttpResult(200, TOKEN_RESPONSE))

        refresh_access_token("rt", credentials=mk_credentials(region="com"), transport=transport)

        assert transport.last_call["url"] == "https://accounts.zoho.com/oauth/v2/token"

    def test_region_defaults_to_india(self):
        transport = MockTransport(HttpResult(200, TOKEN_RESPONSE))

        refresh_access_token("rt", credentials=mk_credentials(), transport=transport)

        assert transport.last_call["url"] == "https://accounts.zoho.in/oauth/v2/token"

    def test_credentials_selected_per_service(self):
        seen = []

        def credentials(service):
            seen.append(service)
            return mk_credentials(client_id=f"{service.value}-id")(service)

        transport = MockTransport(HttpResult(200, TOKEN_RESPONSE))
        refresh_access_token("rt", service="workdrive", credentials=credentials, transport=transport)

        assert [s.value for s in seen] == ["workdrive"]
        assert _form(transport.last_call)["client_id"] == "workdrive-id"

    @pytest.mark.parametrize("refresh_token", [None, "", 42])
    def test_invalid_refresh_token(self, refresh_token):
        transport = MockTransport()

        with pytest.raises(TokenRefreshError) as exc_info:
            refresh_access_token(refresh_token, credentials=mk_credentials(), transport=transport)

        assert exc_info.value.message == "INVALID_REFRESH_TOKEN"
        assert transport.call_count == 0

    def test_error_with_200_status(self):
        transport = MockTransport(HttpResult(200, {"error": "invalid_code"}))

        with pytest.raises(TokenRefreshError) as exc_info:
            refresh_access_token("rt", credentials=mk_credentials(), transport=transport)

        assert "invalid or expired" in exc_info.value.message
        assert exc_info.value.details["error"] == "invalid_code"

    def test_invalid_client(self):
        transport = MockTransport(HttpResult(200, {"error": "invalid_client"}))

        with pytest.raises(TokenRefreshError) as exc_info:
            refresh_access_token("rt", credentials=mk_credentials(), transport=transport)

        assert "Client ID or Client Secret" in exc_info.value.message

    def test_unknown_error(self):
        transport = MockTransport(HttpResult(200, {"error": {"reason": "odd"}}))

        with pytest.raises(TokenRefreshError) as exc_info:
            refresh_access_token("rt", credentials=mk_credentials(), transport=transport)

        assert "rejected" in exc_info.value.message

    def test_http_error_wrapped(self):
        transport = MockTransport(HttpResult(400, {"error": "invalid_request"}))

        with pytest.raises(TokenRefreshError) as exc_info:
            refresh_access_token("rt", credentials=mk_credentials(), transport=transport)

        assert isinstance(exc_info.value.cause, ApiError)
        assert exc_info.value.cause.status_code == 400

    def test_transport_error_wrapped(self):
        transport = MockTransport(network_error())

        with pytest.raises(TokenRefreshError) as exc_info:
            refresh_access_token("rt", credentials=mk_credentials(), transport=transport)

        assert isinstance(exc_info.value.cause, TransportError)

    def test_non_json_response(self):
        transport = MockTransport(HttpResult(200, "<html>"))

        with pytest.raises(TokenRefreshError):
            refresh_access_token("rt", credentials=mk_credentials(), transport=transport)

    def test_missing_credentials(self):
        def credentials(service):
            raise ConfigurationError("Configuration for Zoho crm is not defined.")

        with pytest.raises(ConfigurationError):
            refresh_access_token("rt", credentials=credentials, transport=MockTransport())


def test_oauth_refresher_delegates():
    transport = MockTransport(HttpResult(200, TOKEN_RESPONSE))
    refresher = OAuthRefresher(credentials=mk_credentials(), transport=transport)

    assert refresher("recruit", "rt", "jp") == TOKEN_RESPONSE
    assert transport.last_call["url"] == "https://accounts.zoho.jp/oauth/v2/token"
