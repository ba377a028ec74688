"""Integration tests for registry session bootstrap."""

from unittest.mock import patch

import pytest

from icrbuild.exceptions import CloudAPIError, ConfigError, CredentialError
from icrbuild.ibmcloud.credentials import CloudConfig
from icrbuild.ibmcloud.iam import IAMTokens
from icrbuild.ibmcloud.session import new_registry_client, resolve_registry


@pytest.fixture
def mock_iam():
    with patch("icrbuild.ibmcloud.session.IAMClient") as mock_client:
        iam = mock_client.return_value
        iam.token_from_api_key.return_value = IAMTokens("key-access-token", "key-refresh-token")
        iam.account_id.return_value = "key-account"
        yield iam


@pytest.mark.integration
class TestResolveRegistry:
    """Tests for resolve_registry()."""

    def test_image_names_registry(self):
        assert resolve_registry("de.icr.io/ns/app:1", "us-south") == ("https://de.icr.io", "de.icr.io", "de.icr.io/ns/app:1")

    def test_default_registry_for_region(self):
        assert resolve_registry("ns/app", "jp-tok") == ("https://jp.icr.io", "jp.icr.io", "jp.icr.io/ns/app")

    def test_unsupported_region(self):
        with pytest.raises(ConfigError, match="Unsupported IBM Cloud default region"):
            resolve_registry("ns/app", "mars-north")


@pytest.mark.integration
class TestNewRegistryClient:
    """Tests for new_registry_client()."""

    def test_api_key_session(self, mock_iam):
        cloud_config = CloudConfig(region="eu-de", api_key="my-key")

        session, image_name = new_registry_client("ns/app:1.0", cloud_config)

        assert image_name == "de.icr.io/ns/app:1.0"
        assert session.registry == "https://de.icr.io"
        assert session.build_target_header.account_id == "key-account"
        assert session.builds.endpoint == "https://de.icr.io"
        tokens = session.builds.tokens
        assert tokens.access_token == "key-access-token"
        assert tokens.iam is mock_iam
        mock_iam.token_from_api_key.assert_called_once_with("my-key")
        mock_iam.account_id.assert_called_once_with("key-access-token")
        assert cloud_config.account_id == "key-account"
        assert cloud_config.credential_source == "config"

    def test_docker_credentials(self, mock_iam, docker_config):
        docker_config({"auths": {"us.icr.io": {"username": "iamapikey", "password": "docker-key"}}})
        cloud_config = CloudConfig()

        session, image_name = new_registry_client("us.icr.io/ns/app", cloud_config)

        assert image_name == "us.icr.io/ns/app"
        mock_iam.token_from_api_key.assert_called_once_with("docker-key")
        assert cloud_config.credential_source == "docker"

    def test_cli_session(self, mock_iam, cli_session):
        cli_session()
        cloud_config = CloudConfig()

        session, _ = new_registry_client("us.icr.io/ns/app", cloud_config)

        tokens = session.builds.tokens
        assert tokens.access_token == "cli-access-token"
        assert tokens.refresh_token == "cli-refresh-token"
        assert tokens.can_refresh
        assert session.build_target_header.account_id == "cli-account"
        mock_iam.token_from_api_key.assert_not_called()
        mock_iam.account_id.assert_not_called()

    def test_cli_session_without_account(self, mock_iam, cli_session):
        cli_session(Account={})

        session, _ = new_registry_client("us.icr.io/ns/app", CloudConfig())

        mock_iam.account_id.assert_called_once_with("cli-access-token")
        assert session.build_target_header.account_id == "key-account"

    def test_no_credentials(self, mock_iam):
        with pytest.raises(CredentialError, match="^IBM Cloud configuration error: IBM Cloud CLI session not found"):
            new_registry_client("us.icr.io/ns/app", CloudConfig())

    def test_rejected_api_key(self, mock_iam):
        mock_iam.token_from_api_key.side_effect = CloudAPIError(
            "iam request failed: Provided API key could not be found.", api="iam", status_code=400
        )

        with pytest.raises(CloudAPIError, match="^IBM Cloud auth error: iam request failed") as exc_info:
            new_registry_client("us.icr.io/ns/app", CloudConfig(api_key="bad-key"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.api == "iam"

    def test_account_lookup_failure(self, mock_iam):
        mock_iam.account_id.side_effect = CloudAPIError("iam user info has no account", api="iam")

        with pytest.raises(CloudAPIError, match="^IBM Cloud fetching user account error"):
            new_registry_client("us.icr.io/ns/app", CloudConfig(api_key="my-key"))

    def test_session_transport_settings(self, mock_iam):
        session, _ = new_registry_client("us.icr.io/ns/app", CloudConfig(api_key="my-key", ssl_disabled=True))

        http = session.builds.http
        assert http.verify is False
        assert http.headers["User-Agent"].startswith("icrbuild/")
        assert session.builds.timeout == (50, 180.0)

    def test_cli_session_ssl_disabled(self, mock_iam, cli_session):
        cli_session(SSLDisabled=True)

        session, _ = new_registry_client("us.icr.io/ns/app", CloudConfig())

        assert session.builds.http.verify is False
