"""
Image Reference Helpers.

Validation of image references against the Docker distribution grammar
and detection of the registry host an image reference points at.

Functions
---------
is_valid_reference : Check an image reference against the reference grammar
get_registry_endpoint : Registry host named by an image reference, if any
add_registry : Prefix an image reference with a default registry host
"""

import re
from urllib.parse import urlparse

from icrbuild.exceptions import ConfigError

NAME_TOTAL_LENGTH_MAX = 255

_ALPHANUMERIC = r"[a-z0-9]+"
_SEPARATOR = r"(?:[._]|__|[-]+)"
_PATH_COMPONENT = rf"{_ALPHANUMERIC}(?:{_SEPARATOR}{_ALPHANUMERIC})*"
_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN = rf"{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*(?::[0-9]+)?"
_NAME = rf"(?:{_DOMAIN}/)?{_PATH_COMPONENT}(?:/{_PATH_COMPONENT})*"
_TAG = r"[\w][\w.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9A-Fa-f]{32,}"

REFERENCE_PATTERN = re.compile(rf"^(?P<name>{_NAME})(?::(?P<tag>{_TAG}))?(?:@(?P<digest>{_DIGEST}))?$")


def is_valid_reference(name: str) -> bool:
    """
    Check an image reference against the Docker reference grammar.

    Parameters
    ----------
    name : str
        Image reference, e.g. "us.icr.io/namespace/app:1.0".

    Returns
    -------
    bool
        True if the reference is well formed.

    Examples
    --------
    >>> is_valid_reference("us.icr.io/ns/app:1.0")
    True
    >>> is_valid_reference("Not An Image")
    False
    """
    if not name:
        return False
    match = REFERENCE_PATTERN.match(name)
    if not match:
        return False
    return len(match["name"]) <= NAME_TOTAL_LENGTH_MAX


def _names_registry(segment: str) -> bool:
    return "." in segment


def get_registry_endpoint(image_name: str) -> str | None:
    """
    Get the registry host an image reference names.

    The first path segment is treated as a registry host when the
    reference has more than one segment and that segment contains a dot.

    Parameters
    ----------
    image_name : str
        Image reference.

    Returns
    -------
    str or None
        Registry host (e.g. "de.icr.io"), or None when the reference does
        not name a registry.

    Examples
    --------
    >>> get_registry_endpoint("de.icr.io/ns/app")
    'de.icr.io'
    >>> get_registry_endpoint("ns/app") is None
    True
    """
    if not image_name:
        return None

    segments = image_name.split("/")
    if len(segments) > 1 and _names_registry(segments[0]):
        return segments[0]
    return None


def add_registry(endpoint: str, image_name: str) -> str:
    """
    Prefix an image reference with the host of a registry endpoint.

    Parameters
    ----------
    endpoint : str
        Registry endpoint URL, e.g. "https://us.icr.io".
    image_name : str
        Image reference that may lack a registry host.

    Returns
    -------
    str
        The image reference unchanged when it already names a registry,
        otherwise "<host>/<image_name>".

    Raises
    ------
    ConfigError
        If the endpoint has no host name.
    """
    hostname = urlparse(endpoint).hostname
    if not hostname:
        raise ConfigError("Bad registry URL for IBM Cloud default region", {"endpoint": endpoint})

    if not image_name:
        return image_name
    if get_registry_endpoint(image_name) is not None:
        return image_name

    return f"{hostname}/{image_name.removeprefix('/')}"
