"""HTTP transport shared by the IBM Cloud API clients."""

import requests

from icrbuild import __version__
from icrbuild.exceptions import CloudAPIError
from icrbuild.ibmcloud.credentials import CloudConfig

CONNECT_TIMEOUT = 50


def new_http_session(cloud_config: CloudConfig) -> requests.Session:
    """
    Create the HTTP session used for every IBM Cloud call.

    Proxies come from the environment (HTTPS_PROXY, NO_PROXY, ...).
    Response compression is disabled so build output streams line by line.

    Parameters
    ----------
    cloud_config : CloudConfig
        Connection settings; ``ssl_disabled`` turns off TLS verification.

    Returns
    -------
    requests.Session
        Configured session.
    """
    session = requests.Session()
    session.trust_env = True
    session.verify = not cloud_config.ssl_disabled
    session.headers.update(
        {
            "User-Agent": f"icrbuild/{__version__}",
            "Accept-Encoding": "identity",
        }
    )
    return session


def request_timeout(cloud_config: CloudConfig) -> tuple[float, float]:
    """
    Get the (connect, read) timeout pair for a request.

    Parameters
    ----------
    cloud_config : CloudConfig
        Connection settings.

    Returns
    -------
    tuple[float, float]
        Connect timeout and read timeout in seconds.
    """
    return (CONNECT_TIMEOUT, cloud_config.http_timeout)


def raise_for_api_error(response: requests.Response, api: str) -> None:
    """
    Raise CloudAPIError for a non-2xx IBM Cloud API response.

    Parameters
    ----------
    response : requests.Response
        Response to check.
    api : str
        Name of the API, used in the error details.

    Raises
    ------
    CloudAPIError
        If the response status is not successful.
    """
    if response.ok:
        return

    message = ""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("errorMessage") or body.get("message") or body.get("error_description") or ""
    if not message:
        message = (response.text or "").strip() or response.reason or "request failed"

    raise CloudAPIError(f"{api} request failed: {message}", api=api, status_code=response.status_code)
