"""
IBM Cloud credential discovery.

Credentials are looked up in a fixed order:

1. an API key from icrbuild configuration or the standard IBM Cloud
   environment variables,
2. the Docker client configuration for the target registry (an IBM Cloud
   API key stored as the registry password, either inline or in a Docker
   credential helper),
3. a pre-authenticated IBM Cloud CLI session.
"""

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from docker.credentials import Store
from docker.credentials.errors import CredentialsNotFound, StoreError

from icrbuild.config.loader import get_config_value
from icrbuild.exceptions import ConfigError, CredentialError
from icrbuild.ibmcloud.endpoints import DEFAULT_IAM_ENDPOINT, DEFAULT_REGION
from icrbuild.lib.paths import get_cli_session_file, get_docker_config_file

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = ("IBMCLOUD_API_KEY", "IC_API_KEY")

SOURCE_CONFIG = "config"
SOURCE_DOCKER = "docker"
SOURCE_CLI_SESSION = "cli-session"


@dataclass
class CloudConfig:
    """
    IBM Cloud connection settings and the credentials resolved for them.

    Attributes
    ----------
    region : str
        IBM Cloud region used to pick the default registry.
    api_key : str
        IBM Cloud API key, exchanged for IAM tokens.
    iam_access_token : str
        IAM access token without the "Bearer " prefix.
    iam_refresh_token : str
        IAM refresh token.
    ssl_disabled : bool
        Skip TLS certificate verification.
    http_timeout : float
        Read timeout in seconds for API calls.
    iam_endpoint : str
        Base URL of the IAM service.
    account_id : str
        IBM Cloud account the build is billed to.
    credential_source : str
        Which store supplied the credentials ("config", "docker",
        "cli-session"), empty until resolved.
    """

    region: str = DEFAULT_REGION
    api_key: str = ""
    iam_access_token: str = ""
    iam_refresh_token: str = ""
    ssl_disabled: bool = False
    http_timeout: float = 180.0
    iam_endpoint: str = DEFAULT_IAM_ENDPOINT
    account_id: str = ""
    credential_source: str = ""

    @classmethod
    def from_config(cls, config: dict | None) -> "CloudConfig":
        """
        Build settings from the loaded icrbuild configuration.

        Parameters
        ----------
        config : dict or None
            Output of ConfigLoader.load().

        Returns
        -------
        CloudConfig
            Settings with any configured API key applied.

        Raises
        ------
        ConfigError
            If http_timeout is not a number.
        """
        config = config or {}
        timeout = get_config_value(config, "ibmcloud.http_timeout", 180)
        try:
            http_timeout = float(timeout)
        except (TypeError, ValueError):
            raise ConfigError("ibmcloud.http_timeout must be a number", {"value": timeout}) from None

        cloud_config = cls(
            region=get_config_value(config, "ibmcloud.region") or DEFAULT_REGION,
            api_key=get_config_value(config, "ibmcloud.api_key") or "",
            ssl_disabled=_as_bool(get_config_value(config, "ibmcloud.ssl_disabled", False)),
            http_timeout=http_timeout,
            iam_endpoint=get_config_value(config, "ibmcloud.iam_endpoint") or DEFAULT_IAM_ENDPOINT,
        )
        if not cloud_config.api_key:
            cloud_config.api_key = _api_key_from_env()
        return cloud_config


def _as_bool(value) -> bool:
    # Environment overrides arrive as strings
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _api_key_from_env() -> str:
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return ""


def _read_json(path: Path, description: str) -> dict:
    try:
        with open(path) as f:
            content = json.load(f)
    except FileNotFoundError:
        raise CredentialError(f"{description} not found", {"path": str(path)}) from None
    except (OSError, json.JSONDecodeError) as e:
        raise CredentialError(f"Unable to read {description}: {e}", {"path": str(path)}) from e

    if not isinstance(content, dict):
        raise CredentialError(f"Unable to read {description}: not a JSON object", {"path": str(path)})
    return content


def _api_key_from_auth(auth: str) -> str:
    try:
        decoded = base64.b64decode(auth, validate=True).decode("utf-8")
    except (binascii.Error, TypeError, UnicodeDecodeError) as e:
        raise CredentialError(f"Unable to decode docker auth entry: {e}") from e

    _, sep, api_key = decoded.partition(":")
    return api_key if sep else ""


def _api_key_from_helper(docker_config: dict, registry_host: str) -> str | None:
    cred_helpers = docker_config.get("credHelpers") or {}
    if not isinstance(cred_helpers, dict):
        raise CredentialError("Unable to read Docker config: credHelpers is not a mapping")

    helper = cred_helpers.get(registry_host) or docker_config.get("credsStore")
    if not helper:
        return None

    logger.debug("Querying docker credential helper %s for %s", helper, registry_host)
    try:
        credentials = Store(helper).get(registry_host)
    except CredentialsNotFound:
        return None
    except StoreError as e:
        raise CredentialError(f"Docker credential helper {helper} failed: {e}") from e

    return credentials.get("Secret") or None


def config_from_docker(cloud_config: CloudConfig, registry_host: str, path: Path | None = None) -> str:
    """
    Take the IBM Cloud API key from the Docker client configuration.

    Only API keys stored as registry passwords are supported: either the
    ``password`` field of the ``auths`` entry, the password part of its
    base64 ``auth`` field, or the secret held by a Docker credential helper.

    Parameters
    ----------
    cloud_config : CloudConfig
        Settings updated in place with the API key.
    registry_host : str
        Registry host, e.g. "us.icr.io".
    path : Path, optional
        Docker config file. Defaults to get_docker_config_file().

    Returns
    -------
    str
        Account ID, always empty: Docker credentials do not carry one.

    Raises
    ------
    CredentialError
        If the file is unreadable or has no API key for the registry.
    """
    path = path or get_docker_config_file()
    docker_config = _read_json(path, "Docker config")
    auths = docker_config.get("auths") or {}
    if not isinstance(auths, dict):
        raise CredentialError("Unable to read Docker config: auths is not a mapping", {"path": str(path)})

    entry = auths.get(registry_host)
    if entry is None:
        entry = auths.get(f"https://{registry_host}")
    if entry is not None and not isinstance(entry, dict):
        raise CredentialError("Unable to read Docker config: auth entry is not a mapping", {"registry": registry_host})

    if entry is not None:
        if entry.get("password"):
            api_key = entry["password"]
        elif entry.get("auth"):
            api_key = _api_key_from_auth(entry["auth"])
        else:
            api_key = ""
        if not api_key:
            raise CredentialError("Found docker config but unable to find API key", {"registry": registry_host})
    else:
        api_key = _api_key_from_helper(docker_config, registry_host)
        if not api_key:
            raise CredentialError(f"Registry {registry_host} not found in docker creds")

    cloud_config.api_key = api_key
    cloud_config.credential_source = SOURCE_DOCKER
    return ""


def config_from_cli_session(cloud_config: CloudConfig, path: Path | None = None) -> str:
    """
    Take IAM tokens from a pre-authenticated IBM Cloud CLI session.

    Parameters
    ----------
    cloud_config : CloudConfig
        Settings updated in place with region, tokens and SSL flag.
    path : Path, optional
        CLI session file. Defaults to get_cli_session_file().

    Returns
    -------
    str
        Account GUID of the logged-in CLI session.

    Raises
    ------
    CredentialError
        If the session file is unreadable or the CLI is not logged in.
    """
    path = path or get_cli_session_file()
    session = _read_json(path, "IBM Cloud CLI session")

    access_token = (session.get("IAMToken") or "").strip()
    if access_token.lower().startswith("bearer "):
        access_token = access_token[len("bearer ") :].strip()
    if not access_token:
        raise CredentialError("IBM Cloud CLI session is not logged in. Run 'ibmcloud login' first")

    if session.get("Region"):
        cloud_config.region = session["Region"]
    cloud_config.iam_access_token = access_token
    cloud_config.iam_refresh_token = session.get("IAMRefreshToken") or ""
    cloud_config.ssl_disabled = bool(session.get("SSLDisabled", False))
    cloud_config.credential_source = SOURCE_CLI_SESSION

    account = session.get("Account") or {}
    return account.get("GUID") or ""


def resolve_credentials(cloud_config: CloudConfig, registry_host: str) -> str:
    """
    Resolve credentials for a registry, trying each store in turn.

    Parameters
    ----------
    cloud_config : CloudConfig
        Settings updated in place with the credentials found.
    registry_host : str
        Registry host the build targets.

    Returns
    -------
    str
        Account ID when the credential store supplies one, else "".

    Raises
    ------
    CredentialError
        If no credential store yields usable credentials.
    """
    if cloud_config.api_key:
        logger.debug("Using IBM Cloud API key from configuration")
        cloud_config.credential_source = SOURCE_CONFIG
        return cloud_config.account_id

    try:
        account_id = config_from_docker(cloud_config, registry_host)
        logger.debug("Using IBM Cloud API key from docker config for %s", registry_host)
        return account_id
    except CredentialError as e:
        logger.warning("Error fetching docker config: %s", e)

    logger.warning("API key not set, trying to use a pre-authenticated CLI session...")
    account_id = config_from_cli_session(cloud_config)
    cloud_config.account_id = account_id
    return account_id
