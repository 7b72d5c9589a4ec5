"""Tests for the credential session and end-to-end credential runs."""

import tempfile
from base64 import b64encode
from pathlib import Path
from unittest import mock

import pytest
from nacl import encoding, public

from src.credentials.authorization import complete_authorization
from src.credentials.config import SecretStoreConfig, XOAuthConfig
from src.credentials.exceptions import ConfigurationError, TokenEndpointError
from src.credentials.pkce import PKCEStore
from src.credentials.rotation import PublishStatus
from src.credentials.session import CredentialSession, build_refresh_coordinator
from src.credentials.token_storage import TokenStorage
from src.x.client import XClient


@pytest.fixture
def confidential_config():
    return XOAuthConfig(client_id="cid", client_secret="S", refresh_token="R1")


@pytest.fixture
def store_config():
    return SecretStoreConfig(repository="octo/bot", token="ghp_test")


class TestCredentialSession:
    """Tests for CredentialSession class."""

    @mock.patch("requests.post")
    def test_get_client_refreshes_once(self, mock_post, confidential_config, store_config, make_response):
        """Repeated get_client calls share one refresh and one client."""
        mock_post.return_value = make_response(200, {"access_token": "A1"})
        factory = mock.Mock()
        session = CredentialSession(confidential_config, store_config, client_factory=factory)

        first = session.get_client()
        second = session.get_client()

        assert first is second
        assert mock_post.call_count == 1
        factory.assert_called_once_with(
            "A1", base_url="https://api.twitter.com", timeout=30.0
        )

    @mock.patch("requests.post")
    def test_default_client_is_x_client(self, mock_post, confidential_config, make_response):
        """Without a factory the session builds an XClient."""
        mock_post.return_value = make_response(200, {"access_token": "A1"})
        session = CredentialSession(confidential_config)

        client = session.get_client()

        assert isinstance(client, XClient)
        assert client.session.headers["Authorization"] == "Bearer A1"

    def test_nothing_happens_before_first_use(self, confidential_config):
        """Creating a session makes no request."""
        with mock.patch("requests.post") as mock_post:
            session = CredentialSession(confidential_config)

        mock_post.assert_not_called()
        assert session.token_pair is None
        assert session.publish_outcome is None

    def test_from_env(self, monkeypatch):
        """from_env wires both configs from the environment."""
        monkeypatch.delenv("X_CLIENT_SECRET", raising=False)
        monkeypatch.setenv("X_CLIENT_ID", "cid")
        monkeypatch.setenv("X_OAUTH2_REFRESH_TOKEN", "R1")
        monkeypatch.setenv("GITHUB_REPOSITORY", "octo/bot")
        monkeypatch.setenv("GH_SECRETS_TOKEN", "ghp_test")
        monkeypatch.setenv("ROTATION_DRY_RUN", "true")

        session = CredentialSession.from_env()

        assert session.config.refresh_token == "R1"
        assert session.store_config.is_configured
        assert session.coordinator.publisher.dry_run is True

    def test_unconfigured_store_has_no_client(self, confidential_config):
        """Without repository and token no store client is built."""
        coordinator = build_refresh_coordinator(confidential_config, SecretStoreConfig())

        assert coordinator.publisher.store is None


class TestCredentialRuns:
    """End-to-end runs with every HTTP call patched."""

    @mock.patch("requests.put")
    @mock.patch("requests.get")
    @mock.patch("requests.post")
    def test_refresh_without_rotation(
        self, mock_post, mock_get, mock_put, confidential_config, store_config, make_response
    ):
        """A response without a new refresh token touches no secret."""
        mock_post.return_value = make_response(
            200, {"token_type": "bearer", "expires_in": 7200, "access_token": "A1"}
        )
        session = CredentialSession(confidential_config, store_config)

        assert session.access_token == "A1"

        headers = mock_post.call_args[1]["headers"]
        assert headers["Authorization"] == "Basic " + b64encode(b"cid:S").decode()
        assert session.publish_outcome.status is PublishStatus.SKIPPED
        mock_get.assert_not_called()
        mock_put.assert_not_called()

    @mock.patch("requests.put")
    @mock.patch("requests.get")
    @mock.patch("requests.post")
    def test_refresh_with_rotation(
        self,
        mock_post,
        mock_get,
        mock_put,
        confidential_config,
        store_config,
        make_response,
        store_private_key,
        store_public_key_json,
    ):
        """A rotated token is sealed and written before the client is returned."""
        mock_post.return_value = make_response(
            200, {"access_token": "A2", "refresh_token": "R2", "expires_in": 7200}
        )
        mock_get.return_value = make_response(200, store_public_key_json)
        mock_put.return_value = make_response(204)
        session = CredentialSession(confidential_config, store_config)

        session.get_client()

        assert session.access_token == "A2"
        assert session.publish_outcome.status is PublishStatus.PUBLISHED
        assert session.publish_outcome.ok

        put_args = mock_put.call_args
        assert put_args[0][0].endswith("/repos/octo/bot/actions/secrets/X_OAUTH2_REFRESH_TOKEN")
        assert put_args[1]["json"]["key_id"] == "K1"
        opened = public.SealedBox(store_private_key).decrypt(
            put_args[1]["json"]["encrypted_value"].encode(), encoding.Base64Encoder
        )
        assert opened == b"R2"

    @mock.patch("requests.put")
    @mock.patch("requests.get")
    @mock.patch("requests.post")
    def test_rotation_with_unusable_public_key(
        self, mock_post, mock_get, mock_put, confidential_config, make_response
    ):
        """A bad store key still yields a client and a reported failure."""
        mock_post.return_value = make_response(200, {"access_token": "A2", "refresh_token": "R2"})
        mock_get.return_value = make_response(200, {"key": None, "key_id": "K1"})

        with tempfile.TemporaryDirectory() as tmpdir:
            recovery_file = str(Path(tmpdir) / "recovery.json")
            store_config = SecretStoreConfig(
                repository="octo/bot", token="ghp_test", recovery_file=recovery_file
            )
            session = CredentialSession(confidential_config, store_config)

            first = session.get_client()
            second = session.get_client()

            assert first is second
            assert session.access_token == "A2"
            assert session.publish_outcome.status is PublishStatus.FAILED
            assert TokenStorage(recovery_file).load().refresh_token == "R2"

        assert mock_post.call_count == 1
        mock_put.assert_not_called()

    @mock.patch("requests.post")
    def test_pkce_exchange_without_stored_verifier(self, mock_post):
        """A PKCE exchange with no stored verifier fails before any request."""
        config = XOAuthConfig(client_id="cid", redirect_uri="https://example.com/cb")

        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ConfigurationError, match="code_verifier"):
                complete_authorization(
                    config,
                    "code123",
                    pkce_store=PKCEStore(str(Path(tmpdir) / ".pkce.json")),
                    token_storage=TokenStorage(str(Path(tmpdir) / "tokens.json")),
                )

        mock_post.assert_not_called()

    @mock.patch("requests.put")
    @mock.patch("requests.get")
    @mock.patch("requests.post")
    def test_revoked_refresh_token(
        self, mock_post, mock_get, mock_put, confidential_config, store_config, make_response
    ):
        """invalid_grant surfaces the provider error and publishes nothing."""
        mock_post.return_value = make_response(
            400,
            {"error": "invalid_grant", "error_description": "Value passed for the token was invalid."},
        )
        session = CredentialSession(confidential_config, store_config)

        with pytest.raises(TokenEndpointError, match="invalid_grant"):
            session.get_client()

        mock_get.assert_not_called()
        mock_put.assert_not_called()
        assert session.publish_outcome is None
