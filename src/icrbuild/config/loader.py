"""Configuration loader with file, secrets and environment support."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from icrbuild.exceptions import ConfigError
from icrbuild.lib.paths import get_config_file, get_project_config_file, get_secrets_file

ENV_PREFIX = "ICRBUILD_"
ENV_SEPARATOR = "__"

DEFAULT_CONFIG = {
    "ibmcloud": {
        "region": "us-south",
        "iam_endpoint": "https://iam.cloud.ibm.com",
        "http_timeout": 180,
        "ssl_disabled": False,
    },
}


class ConfigLoader:
    """
    Load and merge configuration from multiple sources.

    The ConfigLoader manages hierarchical configuration loading from:
    1. Built-in defaults
    2. Base config (config.yaml)
    3. Project config (./icrbuild.yaml)
    4. Secrets (secrets.yaml)
    5. Environment variables (ICRBUILD_SECTION__KEY)

    Attributes
    ----------
    config_path : Path
        Path to base configuration file.
    """

    def __init__(self, config_path: Path | None = None):
        """
        Initialize configuration loader.

        Parameters
        ----------
        config_path : Path or None, optional
            Path to base config file. If None, uses default config.yaml location,
            by default None.
        """
        self.config_path = config_path or get_config_file()

    def _load_yaml_file(self, path: Path) -> dict:
        """
        Load and parse a YAML configuration file.

        Parameters
        ----------
        path : Path
            Path to YAML file to load.

        Returns
        -------
        dict
            Parsed YAML content, or empty dict if file doesn't exist.

        Raises
        ------
        ConfigError
            If YAML file contains invalid syntax or is not a mapping.
        """
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not content:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(f"Configuration in {path} must be a mapping")
        return content

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """
        Deep merge two dictionaries recursively.

        Nested dictionaries are merged recursively. For non-dict values,
        the override value replaces the base value.

        Parameters
        ----------
        base : dict
            Base dictionary to merge into.
        override : dict
            Override dictionary with values to merge.

        Returns
        -------
        dict
            New dictionary with merged contents.
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: dict) -> dict:
        """
        Apply environment variable overrides to configuration.

        Reads environment variables with ICRBUILD_ prefix and applies them
        to the configuration. Nesting levels are separated by a double
        underscore, so ICRBUILD_IBMCLOUD__API_KEY sets ``ibmcloud.api_key``.

        Parameters
        ----------
        config : dict
            Configuration dictionary to apply overrides to.

        Returns
        -------
        dict
            Configuration with environment variable overrides applied.
        """
        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            key_path = env_key[len(ENV_PREFIX) :].lower().split(ENV_SEPARATOR)
            if not all(key_path):
                continue

            current = config
            for key in key_path[:-1]:
                if not isinstance(current.get(key), dict):
                    current[key] = {}
                current = current[key]

            current[key_path[-1]] = env_value

        return config

    def load(self) -> dict:
        """
        Load and merge configuration from all sources.

        Merge order (lowest to highest priority):
        1. Built-in defaults
        2. Base config (config.yaml)
        3. Project config (./icrbuild.yaml)
        4. Secrets (secrets.yaml)
        5. Environment variables (ICRBUILD_*)

        Returns
        -------
        dict
            Merged configuration dictionary with metadata section.
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        for path in self._candidate_sources():
            config = self._deep_merge(config, self._load_yaml_file(path))

        config = self._apply_env_overrides(config)

        config["_meta"] = {
            "config_sources": self._get_loaded_sources(),
        }

        return config

    def _candidate_sources(self) -> list[Path]:
        return [self.config_path, get_project_config_file(), get_secrets_file()]

    def _get_loaded_sources(self) -> list[str]:
        """
        Get list of configuration files that were loaded.

        Returns
        -------
        list of str
            List of config file paths that exist and were successfully loaded.
        """
        return [str(path) for path in self._candidate_sources() if path.exists()]


def get_config_value(config: dict, key_path: str, default: Any = None) -> Any:
    """
    Get configuration value using dot notation path.

    Navigates through nested dictionaries using dot-separated keys.

    Parameters
    ----------
    config : dict
        Configuration dictionary to query.
    key_path : str
        Key path in dot notation (e.g., "ibmcloud.region").
    default : Any, optional
        Default value to return if key doesn't exist, by default None.

    Returns
    -------
    Any
        Configuration value if found, default value otherwise.

    Examples
    --------
    >>> config = {"ibmcloud": {"region": "eu-de"}}
    >>> get_config_value(config, "ibmcloud.region")
    'eu-de'
    >>> get_config_value(config, "nonexistent.key", "default")
    'default'
    """
    keys = key_path.split(".")
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value
