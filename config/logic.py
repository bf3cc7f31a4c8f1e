from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from config.loader import load_config
from config.models import Config
from utils.errors import ConfigError
from utils.logger import logger

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
USER_CONFIG_DIR = Path.home() / ".git-sense"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.yaml"
PROJECT_CONFIG_FILENAME = ".git-sense.yaml"


def deep_merge(target: Dict[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merges `source` into `target` in place; nested mappings merge, lists and scalars replace.
    """
    for key, value in source.items():
        current = target.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            deep_merge(current, value)
        else:
            target[key] = value
    return target


def find_project_config(start_dir: Path = Path(".")) -> Optional[Path]:
    """
    Returns `.git-sense.yaml` at the root of the enclosing git checkout, if there is one.
    """
    for directory in (start_dir.resolve(), *start_dir.resolve().parents):
        if (directory / ".git").exists():
            candidate = directory / PROJECT_CONFIG_FILENAME
            return candidate if candidate.is_file() else None
    return None


def _config_layers(custom_config_path: Optional[str]) -> List[Path]:
    """
    配置层按优先级从低到高: 默认 -> 用户 -> 项目
    指定 --config 时, 该文件直接叠加在默认配置之上
    """
    if not DEFAULT_CONFIG_PATH.is_file():
        raise ConfigError("Default configuration file not found.")

    if custom_config_path:
        custom = Path(custom_config_path)
        if not custom.is_file():
            raise ConfigError(f"Custom config file not found at: {custom_config_path}")
        logger.info(f"Using custom configuration from: {custom}")
        return [DEFAULT_CONFIG_PATH, custom]

    layers = [DEFAULT_CONFIG_PATH]
    if USER_CONFIG_PATH.is_file():
        layers.append(USER_CONFIG_PATH)
    project_config = find_project_config()
    if project_config:
        layers.append(project_config)
    return layers


def load_and_merge_configs(custom_config_path: Optional[str] = None) -> Config:
    """
    Builds the effective `Config` from every configuration layer.

    Raises:
        ConfigError: If a layer cannot be parsed or the merged result is invalid.
    """
    merged: Dict[str, Any] = {}
    for path in _config_layers(custom_config_path):
        logger.debug(f"Loading configuration from: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                deep_merge(merged, load_config(f))
        except OSError as e:
            logger.warning(f"Could not read config at {path}: {e}")

    try:
        config = Config.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
    logger.debug(f"Final merged config: {config.model_dump_json(indent=2)}")
    return config
