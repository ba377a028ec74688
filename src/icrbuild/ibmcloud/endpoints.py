"""IBM Cloud service endpoints."""

from icrbuild.exceptions import ConfigError

DEFAULT_REGION = "us-south"
DEFAULT_IAM_ENDPOINT = "https://iam.cloud.ibm.com"

REGISTRY_ENDPOINTS = {
    "us-south": "https://us.icr.io",
    "us-east": "https://us.icr.io",
    "eu-gb": "https://uk.icr.io",
    "uk-south": "https://uk.icr.io",
    "eu-de": "https://de.icr.io",
    "eu-es": "https://es.icr.io",
    "au-syd": "https://au.icr.io",
    "jp-tok": "https://jp.icr.io",
    "jp-osa": "https://jp2.icr.io",
    "ca-tor": "https://ca.icr.io",
    "br-sao": "https://br.icr.io",
    "global": "https://icr.io",
}


def container_registry_endpoint(region: str) -> str:
    """
    Get the Container Registry endpoint serving a region.

    Parameters
    ----------
    region : str
        IBM Cloud region, e.g. "us-south".

    Returns
    -------
    str
        Registry endpoint URL.

    Raises
    ------
    ConfigError
        If the region has no Container Registry endpoint.
    """
    try:
        return REGISTRY_ENDPOINTS[region]
    except KeyError:
        raise ConfigError("Unsupported IBM Cloud default region", {"region": region}) from None
