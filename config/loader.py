import os
import re
from pathlib import Path
from typing import Any, Dict, IO, Mapping

import yaml

from utils.errors import ConfigError

# Regex for environment variable substitution
ENV_VAR_MATCHER = re.compile(r"\$\{(\w+)\}")


class _EnvLoader(yaml.SafeLoader):
    """SafeLoader with ${VAR} substitution, kept separate so yaml.SafeLoader stays untouched."""


def _env_var_constructor(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    """
    Custom YAML constructor to substitute environment variables.
    e.g., ${VAR_NAME} will be replaced by the value of the VAR_NAME environment variable.
    """
    value = loader.construct_scalar(node)
    match = ENV_VAR_MATCHER.match(value)
    if not match:
        return value

    env_var = match.group(1)
    replacement = os.getenv(env_var)
    if replacement is None:
        raise ConfigError(f"Environment variable '{env_var}' not found for substitution in config.")

    return replacement


_EnvLoader.add_constructor("!env", _env_var_constructor)
_EnvLoader.add_implicit_resolver("!env", ENV_VAR_MATCHER, None)


def load_config(config_file: IO[str]) -> Dict[str, Any]:
    """
    Loads a YAML configuration file.

    Args:
        config_file: A file-like object representing the YAML configuration.

    Returns:
        A dictionary containing the configuration.

    Raises:
        ConfigError: If the file cannot be parsed.
    """
    try:
        config = yaml.load(config_file, Loader=_EnvLoader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML configuration: {e}") from e
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError("YAML configuration must be a mapping at the top level.")
    return config


def save_config(data: Mapping[str, Any], path: Path, mode: int = 0o600) -> None:
    """
    Writes a mapping to a YAML file, creating parent directories as needed.

    The file permissions are set to `mode` since it may hold secrets.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(dict(data), f, default_flow_style=False, sort_keys=True)
    os.chmod(path, mode)
