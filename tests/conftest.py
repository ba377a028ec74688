"""Pytest configuration and shared fixtures."""

import base64
import json
import logging
import os
from pathlib import Path

import pytest
import requests


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point every credential and config location at a temporary home.

    Returns
    -------
    Path
        Temporary home directory.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    for name in (
        "DOCKER_CONFIG",
        "IBMCLOUD_HOME",
        "IBMCLOUD_API_KEY",
        "IC_API_KEY",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("ICRBUILD_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture(autouse=True)
def reset_logger():
    """Undo setup_logger() so caplog sees icrbuild records."""
    yield
    logger = logging.getLogger("icrbuild")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def docker_config(isolated_home):
    """Write ~/.docker/config.json.

    Returns
    -------
    callable
        Function taking the config dict and returning the file path.
    """

    def write(content: dict) -> Path:
        path = isolated_home / ".docker" / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(content))
        return path

    return write


@pytest.fixture
def docker_auth():
    """Encode a docker ``auth`` field."""

    def encode(username: str, password: str) -> str:
        return base64.b64encode(f"{username}:{password}".encode()).decode()

    return encode


@pytest.fixture
def cli_session(isolated_home):
    """Write an IBM Cloud CLI session file.

    Returns
    -------
    callable
        Function taking overrides and returning the file path.
    """

    def write(**overrides) -> Path:
        content = {
            "Region": "eu-de",
            "IAMToken": "Bearer cli-access-token",
            "IAMRefreshToken": "cli-refresh-token",
            "Account": {"GUID": "cli-account"},
            "SSLDisabled": False,
        }
        content.update(overrides)
        path = isolated_home / ".bluemix" / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(content))
        return path

    return write


@pytest.fixture
def make_response():
    """Build real requests.Response objects without a network.

    Returns
    -------
    callable
        Function (status_code, body) -> requests.Response. ``body`` may be
        a dict (JSON), a list of dicts (JSON stream) or bytes.
    """

    def make(status_code: int = 200, body=None) -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response.reason = "OK" if status_code < 400 else "Error"
        response.encoding = "utf-8"
        if isinstance(body, dict):
            content = json.dumps(body).encode()
        elif isinstance(body, list):
            content = b"".join(json.dumps(item).encode() + b"\r\n" for item in body)
        else:
            content = body or b""
        response._content = content
        response._content_consumed = True
        return response

    return make


@pytest.fixture
def mock_config():
    """Standard test configuration.

    Returns
    -------
    dict
        Test configuration dictionary.
    """
    return {
        "ibmcloud": {
            "region": "us-south",
            "iam_endpoint": "https://iam.cloud.ibm.com",
            "http_timeout": 180,
            "ssl_disabled": False,
        },
        "logging": {"level": "INFO", "format": "console"},
        "_meta": {"config_sources": []},
    }


@pytest.fixture
def build_context(tmp_path):
    """Create a build context directory with a Dockerfile.

    Returns
    -------
    Path
        Context directory.
    """
    context = tmp_path / "context"
    context.mkdir()
    (context / "Dockerfile").write_text("FROM alpine\nCOPY app.txt /app.txt\n")
    (context / "app.txt").write_text("hello\n")
    return context
