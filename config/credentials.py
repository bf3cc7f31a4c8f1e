import os
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

import yaml

from config.loader import save_config
from config.logic import USER_CONFIG_DIR
from utils.logger import logger

DEFAULT_CREDENTIALS_PATH = USER_CONFIG_DIR / "credentials.yaml"


class CredentialName(str, Enum):
    """The secrets git-sense keeps, each shadowed by an environment variable."""

    GITHUB_TOKEN = "github_token"
    ANTHROPIC_KEY = "anthropic_key"

    @property
    def env_var(self) -> str:
        return {
            CredentialName.GITHUB_TOKEN: "GITHUB_TOKEN",
            CredentialName.ANTHROPIC_KEY: "ANTHROPIC_API_KEY",
        }[self]


class CredentialStore:
    """
    A YAML-file backed store for the GitHub token and the Anthropic API key.

    Reads consult the environment first, then the file. Writes only touch the file.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else DEFAULT_CREDENTIALS_PATH

    def _read(self) -> Dict[str, str]:
        if not self.path.is_file():
            return {}
        try:
            # 凭据原样读取, 不做 ${VAR} 替换
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read credentials at {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: str(v) for k, v in data.items() if v}

    def get(self, name: CredentialName) -> Optional[str]:
        env_value = os.getenv(name.env_var)
        if env_value:
            logger.debug(f"Using {name.value} from environment variable {name.env_var}")
            return env_value
        return self._read().get(name.value)

    def set(self, name: CredentialName, value: str) -> None:
        data = self._read()
        data[name.value] = value
        save_config(data, self.path)
        logger.info(f"Stored {name.value} in {self.path}")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Removed credentials file {self.path}")

    def is_github_authenticated(self) -> bool:
        return bool(self.get(CredentialName.GITHUB_TOKEN))

    def is_anthropic_configured(self) -> bool:
        return bool(self.get(CredentialName.ANTHROPIC_KEY))
