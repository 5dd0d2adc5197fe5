"""Unit tests for rememberthemilk.client.RTMClient."""

from __future__ import annotations

import logging

import pytest
import requests

from rememberthemilk.client import API_VERSION, REST_URL, Endpoints, RTMClient
from rememberthemilk.config import RTMConfig
from rememberthemilk.exceptions import (
    AuthRequiredError,
    ConfigError,
    DecodeError,
    ProtocolError,
    TransportError,
)
from rememberthemilk.session import Authenticated, Perms, Unauthenticated, User
from rememberthemilk.signing import sign_params

from .helpers import fail_body, make_response, ok_body, sent_params, serve


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestInit:
    def test_defaults(self):
        c = RTMClient("key", "secret")
        assert c.endpoints == Endpoints()
        assert isinstance(c.session, requests.Session)
        assert isinstance(c.state, Unauthenticated)
        assert c.token is None

    def test_restored_token(self, mock_session):
        c = RTMClient("key", "secret", session=mock_session, token="tok")
        assert c.state == Authenticated(token="tok")
        assert c.token == "tok"

    def test_managers_wired(self, client):
        assert client.auth is not None
        assert client.tasks is not None
        assert client.lists is not None
        assert client.timelines is not None


class TestConfig:
    def test_from_config_with_user(self, mock_session):
        user = User(id="1", username="bob", fullname="Bob")
        config = RTMConfig(api_key="k", api_secret="s", token="t", user=user, perms=Perms.WRITE)
        c = RTMClient.from_config(config, session=mock_session)
        assert c.api_key == "k"
        assert c.api_secret == "s"
        assert c.state == Authenticated(token="t", user=user, perms=Perms.WRITE)

    def test_from_config_without_token(self, mock_session):
        c = RTMClient.from_config(RTMConfig(api_key="k", api_secret="s"), session=mock_session)
        assert isinstance(c.state, Unauthenticated)

    def test_from_config_missing_secret(self):
        with pytest.raises(ConfigError):
            RTMClient.from_config(RTMConfig(api_key="k"))

    def test_to_config_round_trip(self, mock_session):
        config = RTMConfig(api_key="k", api_secret="s", token="t", perms=Perms.READ)
        assert RTMClient.from_config(config, session=mock_session).to_config() == config

    def test_to_config_unauthenticated(self, client):
        assert client.to_config() == RTMConfig(api_key="key", api_secret="secret")


# ---------------------------------------------------------------------------
# require_token
# ---------------------------------------------------------------------------


class TestRequireToken:
    def test_no_token(self, client):
        with pytest.raises(AuthRequiredError) as exc_info:
            client.require_token(Perms.READ)
        assert exc_info.value.required is Perms.READ
        assert exc_info.value.granted is None

    def test_unknown_perms_trusted(self, authed_client):
        assert authed_client.require_token(Perms.DELETE) == "tok"

    def test_insufficient_perms(self, client):
        client.state = Authenticated(token="tok", perms=Perms.READ)
        with pytest.raises(AuthRequiredError) as exc_info:
            client.require_token(Perms.WRITE)
        assert exc_info.value.granted is Perms.READ
        assert "write" in str(exc_info.value)

    def test_higher_perms_cover_lower(self, client):
        client.state = Authenticated(token="tok", perms=Perms.DELETE)
        assert client.require_token(Perms.WRITE) == "tok"


# ---------------------------------------------------------------------------
# HTTP layer
# ---------------------------------------------------------------------------


class TestRequest:
    def test_get_to_rest_endpoint(self, client, mock_session):
        serve(mock_session, ok_body())
        client.call("rtm.auth.getFrob")
        method, url = mock_session.request.call_args[0]
        assert method == "GET"
        assert url.startswith(REST_URL + "?")

    def test_common_params_and_signature(self, client, mock_session):
        serve(mock_session, ok_body())
        client.call("rtm.auth.getFrob")
        params = sent_params(mock_session)
        assert params["method"] == "rtm.auth.getFrob"
        assert params["format"] == "json"
        assert params["api_key"] == "key"
        assert params["v"] == API_VERSION
        assert "auth_token" not in params
        sig = params.pop("api_sig")
        assert sig == sign_params(params, "secret")

    def test_custom_endpoint(self, mock_session):
        c = RTMClient("key", "secret", session=mock_session, endpoints=Endpoints(rest_url="http://localhost:9999/rest/"))
        serve(mock_session, ok_body())
        c.call("rtm.auth.getFrob")
        assert mock_session.request.call_args[0][1].startswith("http://localhost:9999/rest/?")

    def test_none_params_dropped(self, authed_client, mock_session):
        serve(mock_session, ok_body())
        authed_client.call("rtm.tasks.getList", Perms.READ, filter=None, list_id="42")
        params = sent_params(mock_session)
        assert "filter" not in params
        assert params["list_id"] == "42"
        assert params["auth_token"] == "tok"

    def test_missing_token_sends_nothing(self, client, mock_session):
        with pytest.raises(AuthRequiredError):
            client.call("rtm.tasks.getList", Perms.READ)
        mock_session.request.assert_not_called()

    def test_returns_payload(self, client, mock_session):
        serve(mock_session, ok_body(frob="abc"))
        assert client.call("rtm.auth.getFrob")["frob"] == "abc"

    def test_http_error_status(self, client, mock_session):
        mock_session.request.return_value = make_response(500, "Internal Server Error")
        with pytest.raises(TransportError) as exc_info:
            client.call("rtm.auth.getFrob")
        assert exc_info.value.status_code == 500

    def test_connection_error(self, client, mock_session):
        mock_session.request.side_effect = requests.ConnectionError("unreachable")
        with pytest.raises(TransportError) as exc_info:
            client.call("rtm.auth.getFrob")
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_timeout(self, client, mock_session):
        mock_session.request.side_effect = requests.Timeout()
        with pytest.raises(TransportError):
            client.call("rtm.auth.getFrob")

    def test_undecodable_body(self, client, mock_session):
        serve(mock_session, "<html>maintenance</html>")
        with pytest.raises(DecodeError):
            client.call("rtm.auth.getFrob")

    def test_fail_envelope(self, client, mock_session):
        serve(mock_session, fail_body(112, "Method not found"))
        with pytest.raises(ProtocolError) as exc_info:
            client.call("rtm.bogus")
        assert exc_info.value.code == 112
        assert exc_info.value.method == "rtm.bogus"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_debug_url_masks_secrets(self, authed_client, mock_session, caplog):
        serve(mock_session, ok_body(tasks={"rev": "r"}))
        with caplog.at_level(logging.DEBUG, logger="rememberthemilk.client"):
            authed_client.call("rtm.tasks.getList", Perms.READ)
        assert "auth_token=***" in caplog.text
        assert "api_sig=***" in caplog.text
        assert "auth_token=tok" not in caplog.text

    def test_error_body_logged(self, client, mock_session, caplog):
        mock_session.request.return_value = make_response(503, "try later")
        with caplog.at_level(logging.ERROR, logger="rememberthemilk.client"):
            with pytest.raises(TransportError):
                client.call("rtm.lists.getList")
        assert "try later" in caplog.text

    def test_token_body_redacted(self, client, mock_session, caplog):
        mock_session.request.return_value = make_response(502, "secret-token-value")
        with caplog.at_level(logging.ERROR, logger="rememberthemilk.client"):
            with pytest.raises(TransportError):
                client.call("rtm.auth.getToken", frob="f")
        assert "secret-token-value" not in caplog.text
        assert "<redacted>" in caplog.text


def test_session_is_reused(mock_session):
    c = RTMClient("key", "secret", session=mock_session)
    mock_session.request.side_effect = [make_response(200, ok_body()), make_response(200, ok_body())]
    c.call("rtm.auth.getFrob")
    c.call("rtm.auth.getFrob")
    assert mock_session.request.call_count == 2
