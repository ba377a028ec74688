"""Path management for icrbuild and the credential stores it reads."""

import os
from pathlib import Path


def get_config_dir() -> Path:
    """
    Get the configuration directory following XDG Base Directory spec.

    Returns
    -------
    Path
        Path to ~/.config/icrbuild/ or $XDG_CONFIG_HOME/icrbuild/.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        base = Path(xdg_config_home)
    else:
        base = Path.home() / ".config"

    return base / "icrbuild"


def get_config_file() -> Path:
    """
    Get path to main configuration file.

    Returns
    -------
    Path
        Path to config.yaml in the configuration directory.
    """
    return get_config_dir() / "config.yaml"


def get_secrets_file() -> Path:
    """
    Get path to secrets configuration file.

    Returns
    -------
    Path
        Path to secrets.yaml in the configuration directory.
    """
    return get_config_dir() / "secrets.yaml"


def get_project_config_file() -> Path:
    """
    Get path to project-local configuration file.

    Returns
    -------
    Path
        Path to ./icrbuild.yaml in the current working directory.
    """
    return Path.cwd() / "icrbuild.yaml"


def get_docker_config_file() -> Path:
    """
    Get path to the Docker client configuration file.

    Honours $DOCKER_CONFIG the same way the Docker CLI does.

    Returns
    -------
    Path
        Path to $DOCKER_CONFIG/config.json or ~/.docker/config.json.
    """
    docker_config = os.environ.get("DOCKER_CONFIG")
    if docker_config:
        return Path(docker_config) / "config.json"
    return Path.home() / ".docker" / "config.json"


def get_cli_session_file() -> Path:
    """
    Get path to the IBM Cloud CLI session file.

    The IBM Cloud CLI stores its login state under $IBMCLOUD_HOME when set,
    otherwise under the home directory.

    Returns
    -------
    Path
        Path to .bluemix/config.json.
    """
    ibmcloud_home = os.environ.get("IBMCLOUD_HOME")
    base = Path(ibmcloud_home) if ibmcloud_home else Path.home()
    return base / ".bluemix" / "config.json"
