"""Version and build information for icrbuild."""

import os
import platform
import re
import sys

from icrbuild import __version__
from icrbuild.exceptions import ValidationError

_SEMVER_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


def get_version_info() -> dict[str, str]:
    """
    Get the version and build information about this installation.

    Git and build fields are stamped by the release pipeline through
    ICRBUILD_GIT_COMMIT, ICRBUILD_GIT_TREE_STATE and ICRBUILD_BUILD_DATE.

    Returns
    -------
    dict[str, str]
        Version, git and runtime platform information.
    """
    return {
        "version": __version__,
        "git_commit": os.environ.get("ICRBUILD_GIT_COMMIT", ""),
        "git_tree_state": os.environ.get("ICRBUILD_GIT_TREE_STATE", ""),
        "build_date": os.environ.get("ICRBUILD_BUILD_DATE", ""),
        "python_version": platform.python_version(),
        "compiler": sys.implementation.name,
        "platform": f"{sys.platform}/{platform.machine().lower()}",
    }


def format_version_info(info: dict[str, str] | None = None) -> str:
    """
    Render version information on a single line.

    Parameters
    ----------
    info : dict[str, str], optional
        Output of get_version_info(). Collected when omitted.

    Returns
    -------
    str
        Space separated ``key:value`` pairs, e.g.
        ``version:1.0.0 git_commit: ... platform:linux/x86_64``.
    """
    info = info or get_version_info()
    return " ".join(f"{key}:{value}" for key, value in info.items())


def parse_version(version: str) -> tuple[int, int, int, str, str]:
    """
    Parse a semantic version string.

    Parameters
    ----------
    version : str
        Version such as "1.2.3", "v1.2.3-rc.1" or " 1.2.3+build.5 ".

    Returns
    -------
    tuple
        (major, minor, patch, prerelease, build). Missing parts are "".

    Raises
    ------
    ValidationError
        If the string is not a semantic version.
    """
    match = _SEMVER_PATTERN.match(version.strip().lstrip("v"))
    if not match:
        raise ValidationError("can't parse semver", {"version": version})

    return (
        int(match["major"]),
        int(match["minor"]),
        int(match["patch"]),
        match["prerelease"] or "",
        match["build"] or "",
    )
