"""Tests for credential configuration module."""

from unittest import mock

import pytest

from src.credentials.config import DEFAULT_SCOPE, SecretStoreConfig, XOAuthConfig
from src.credentials.exceptions import ConfigurationError
from src.credentials.flow import ConfidentialClient, FlowMode, PublicClient


class TestXOAuthConfig:
    """Tests for XOAuthConfig class."""

    def test_config_with_required_params(self):
        """Config can be created with just a client ID."""
        config = XOAuthConfig(client_id="test_client_id")

        assert config.client_id == "test_client_id"
        assert config.client_secret is None
        assert config.scope == DEFAULT_SCOPE
        assert config.token_url == "https://api.twitter.com/2/oauth2/token"
        assert config.authorization_url == "https://twitter.com/i/oauth2/authorize"
        assert config.request_timeout == 30.0
        assert config.mode is FlowMode.PKCE
        assert isinstance(config.identity, PublicClient)

    def test_config_with_secret_is_confidential(self):
        """A client secret resolves the identity to confidential once."""
        config = XOAuthConfig(
            client_id="id", client_secret="secret", redirect_uri="https://example.com/cb"
        )

        assert isinstance(config.identity, ConfidentialClient)
        assert config.identity.redirect_uri == "https://example.com/cb"
        assert config.mode is FlowMode.CONFIDENTIAL

    def test_config_validates_empty_client_id(self):
        """Config raises error for empty client_id."""
        with pytest.raises(ConfigurationError, match="client_id cannot be empty"):
            XOAuthConfig(client_id="")

    def test_config_validates_timeout(self):
        """Config rejects non-positive timeouts."""
        with pytest.raises(ConfigurationError, match="request_timeout"):
            XOAuthConfig(client_id="id", request_timeout=0)

    def test_config_rejects_confidential_without_secret(self):
        """Explicit confidential flow needs a secret."""
        with pytest.raises(ConfigurationError, match="confidential"):
            XOAuthConfig(client_id="id", flow=FlowMode.CONFIDENTIAL)

    def test_secrets_not_in_repr(self):
        """Client secret and refresh token are kept out of repr."""
        config = XOAuthConfig(client_id="id", client_secret="S3cr3t", refresh_token="R1-token")

        assert "S3cr3t" not in repr(config)
        assert "R1-token" not in repr(config)

    @mock.patch.dict(
        "os.environ",
        {
            "X_CLIENT_ID": "env_id",
            "X_CLIENT_SECRET": "env_secret",
            "X_REDIRECT_URI": "https://example.com/cb",
            "X_OAUTH2_REFRESH_TOKEN": "R1",
            "X_HTTP_TIMEOUT": "12.5",
        },
        clear=True,
    )
    def test_from_env_with_all_vars(self):
        """from_env loads all configuration from environment."""
        config = XOAuthConfig.from_env()

        assert config.client_id == "env_id"
        assert config.client_secret == "env_secret"
        assert config.redirect_uri == "https://example.com/cb"
        assert config.refresh_token == "R1"
        assert config.request_timeout == 12.5
        assert config.mode is FlowMode.CONFIDENTIAL

    @mock.patch.dict(
        "os.environ",
        {"X_CLIENT_ID": "env_id", "X_CLIENT_SECRET": "env_secret", "X_OAUTH2_FLOW": "pkce"},
        clear=True,
    )
    def test_from_env_explicit_flow_override(self):
        """X_OAUTH2_FLOW overrides inference from the secret."""
        config = XOAuthConfig.from_env()

        assert config.mode is FlowMode.PKCE

    @mock.patch.dict("os.environ", {"X_CLIENT_ID": "env_id", "X_CLIENT_SECRET": ""}, clear=True)
    def test_from_env_empty_secret_means_public(self):
        """An empty X_CLIENT_SECRET is treated as absent."""
        config = XOAuthConfig.from_env()

        assert config.client_secret is None
        assert config.mode is FlowMode.PKCE

    @mock.patch.dict("os.environ", {}, clear=True)
    def test_from_env_missing_client_id(self):
        """from_env raises error if X_CLIENT_ID is missing."""
        with pytest.raises(ConfigurationError, match="Missing X OAuth credentials"):
            XOAuthConfig.from_env()

    @mock.patch.dict(
        "os.environ", {"X_CLIENT_ID": "id", "X_HTTP_TIMEOUT": "soon"}, clear=True
    )
    def test_from_env_invalid_timeout(self):
        """from_env rejects a non-numeric timeout."""
        with pytest.raises(ConfigurationError, match="X_HTTP_TIMEOUT"):
            XOAuthConfig.from_env()

    @pytest.mark.parametrize("value", ["inf", "-inf", "nan", "Infinity"])
    def test_from_env_rejects_unbounded_timeout(self, value):
        """from_env rejects timeouts that are not finite."""
        with mock.patch.dict("os.environ", {"X_CLIENT_ID": "id", "X_HTTP_TIMEOUT": value}, clear=True):
            with pytest.raises(ConfigurationError, match="finite"):
                XOAuthConfig.from_env()

    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_config_rejects_non_finite_timeout(self, value):
        """Programmatic configs reject timeouts that are not finite."""
        with pytest.raises(ConfigurationError, match="request_timeout"):
            XOAuthConfig(client_id="id", request_timeout=value)
        with pytest.raises(ConfigurationError, match="request_timeout"):
            SecretStoreConfig(request_timeout=value)


class TestSecretStoreConfig:
    """Tests for SecretStoreConfig class."""

    def test_defaults_are_not_configured(self):
        """An empty config is valid but not configured."""
        config = SecretStoreConfig()

        assert config.is_configured is False
        assert config.secret_name == "X_OAUTH2_REFRESH_TOKEN"
        assert config.api_url == "https://api.github.com"
        assert config.dry_run is False

    def test_configured_with_repository_and_token(self):
        """Repository and token together make the store usable."""
        config = SecretStoreConfig(repository="octo/bot", token="ghp_x")

        assert config.is_configured is True
        assert "ghp_x" not in repr(config)

    def test_rejects_malformed_repository(self):
        """Repository must be owner/repo."""
        with pytest.raises(ConfigurationError, match="owner/repo"):
            SecretStoreConfig(repository="just-a-name", token="t")

    @mock.patch.dict(
        "os.environ",
        {
            "GITHUB_REPOSITORY": "octo/bot",
            "GH_SECRETS_TOKEN": "ghp_x",
            "ROTATION_DRY_RUN": "true",
            "X_ROTATION_RECOVERY_FILE": "/tmp/recovery.json",
        },
        clear=True,
    )
    def test_from_env(self):
        """from_env reads repository, token and flags."""
        config = SecretStoreConfig.from_env()

        assert config.repository == "octo/bot"
        assert config.token == "ghp_x"
        assert config.dry_run is True
        assert config.recovery_file == "/tmp/recovery.json"

    @pytest.mark.parametrize("value, expected", [("1", True), ("yes", True), ("0", False), ("", False)])
    def test_dry_run_flag_values(self, value, expected):
        """ROTATION_DRY_RUN accepts common truthy spellings."""
        with mock.patch.dict("os.environ", {"ROTATION_DRY_RUN": value}, clear=True):
            assert SecretStoreConfig.from_env().dry_run is expected
