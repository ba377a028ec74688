"""Authenticated Container Registry session bootstrap."""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

from icrbuild.exceptions import IcrbuildError, wrap_error
from icrbuild.ibmcloud.credentials import CloudConfig, resolve_credentials
from icrbuild.ibmcloud.endpoints import container_registry_endpoint
from icrbuild.ibmcloud.http import new_http_session, request_timeout
from icrbuild.ibmcloud.iam import IAMClient, IAMTokens
from icrbuild.ibmcloud.registry import BuildTargetHeader, RegistryBuilds
from icrbuild.lib.reference import add_registry, get_registry_endpoint

logger = logging.getLogger(__name__)


@dataclass
class RegistrySession:
    """
    Authenticated handle on a Container Registry.

    Attributes
    ----------
    registry : str
        Registry endpoint URL.
    builds : RegistryBuilds
        Builds API client.
    build_target_header : BuildTargetHeader
        Account the builds run in.
    """

    registry: str
    builds: RegistryBuilds
    build_target_header: BuildTargetHeader


def resolve_registry(image_name: str, region: str) -> tuple[str, str, str]:
    """
    Work out which registry an image is built in.

    Parameters
    ----------
    image_name : str
        Image reference, with or without a registry host.
    region : str
        Region whose registry is used when the image names none.

    Returns
    -------
    tuple[str, str, str]
        (endpoint URL, registry host, image name including the host).

    Raises
    ------
    ConfigError
        If the region has no registry endpoint.
    """
    host = get_registry_endpoint(image_name)
    if host is not None:
        return f"https://{host}", host, image_name

    endpoint = container_registry_endpoint(region)
    image_name = add_registry(endpoint, image_name)
    return endpoint, urlparse(endpoint).netloc, image_name


def new_registry_client(image_name: str, cloud_config: CloudConfig | None = None) -> tuple[RegistrySession, str]:
    """
    Authenticate with IBM Cloud and open a session on the image's registry.

    The image name is rewritten to include the default registry of the
    configured region when it does not name one.

    Parameters
    ----------
    image_name : str
        Image reference the build is tagged with.
    cloud_config : CloudConfig, optional
        Connection settings. Defaults to CloudConfig().

    Returns
    -------
    tuple[RegistrySession, str]
        The session and the image name to build.

    Raises
    ------
    IcrbuildError
        ConfigError, CredentialError or CloudAPIError describing which
        bootstrap step failed.
    """
    cloud_config = cloud_config or CloudConfig()

    endpoint, host, image_name = resolve_registry(image_name, cloud_config.region)
    logger.debug("Using registry %s for %s", endpoint, image_name)

    try:
        account_id = resolve_credentials(cloud_config, host)
    except IcrbuildError as e:
        raise wrap_error(e, "IBM Cloud configuration error") from e

    # The CLI session may have changed ssl_disabled
    http = new_http_session(cloud_config)
    timeout = request_timeout(cloud_config)
    iam = IAMClient(http, cloud_config.iam_endpoint, timeout)

    if cloud_config.api_key:
        try:
            tokens = iam.token_from_api_key(cloud_config.api_key)
        except IcrbuildError as e:
            raise wrap_error(e, "IBM Cloud auth error") from e
        tokens.iam = iam
    else:
        tokens = IAMTokens(
            access_token=cloud_config.iam_access_token,
            refresh_token=cloud_config.iam_refresh_token,
            iam=iam,
        )

    if not account_id:
        try:
            account_id = iam.account_id(tokens.access_token)
        except IcrbuildError as e:
            raise wrap_error(e, "IBM Cloud fetching user account error") from e
    cloud_config.account_id = account_id
    logger.debug("Authenticated with %s credentials for account %s", cloud_config.credential_source, account_id)

    return (
        RegistrySession(
            registry=endpoint,
            builds=RegistryBuilds(http, endpoint, tokens, timeout),
            build_target_header=BuildTargetHeader(account_id=account_id),
        ),
        image_name,
    )
