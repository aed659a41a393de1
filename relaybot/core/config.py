"""
relaybot Configuration Loader

Loads configuration from:
1. Environment variables (.env)
2. config.yml (YAML file)
3. Default values

Environment variables take precedence over YAML values.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from relaybot.core.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_IMAGE_KEYWORDS,
    DEFAULT_MAX_LENGTH,
    MIN_MAX_LENGTH,
)
from relaybot.core.errors import ConfigurationError
from relaybot.core.llm_client import ImageSize


# Load .env file
load_dotenv()


# =============================================================================
# Pydantic Configuration Models
# =============================================================================

def _split_list(value: Any) -> Any:
    """Accept comma-separated strings and scalars where a list is expected."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (int, float)):
        return [value]
    return value


class SystemConfig(BaseModel):
    """System-level configuration."""
    log_level: str = "INFO"


class LLMConfig(BaseModel):
    """Generation backend configuration."""
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model_name: str = "gpt-3.5-turbo"
    timeout_seconds: float = DEFAULT_HTTP_TIMEOUT


class DialogueConfig(BaseModel):
    """Conversation history configuration."""
    max_length: int = DEFAULT_MAX_LENGTH

    @field_validator("max_length")
    @classmethod
    def _check_max_length(cls, value: int) -> int:
        if value < MIN_MAX_LENGTH:
            raise ValueError(f"max_length must be at least {MIN_MAX_LENGTH}, got {value}")
        return value


class ImagesConfig(BaseModel):
    """Image generation configuration."""
    size: ImageSize = ImageSize.SMALL
    directory: Path = Path("./images/")


class IntentConfig(BaseModel):
    """Intent classifier configuration."""
    strategy: Literal["keyword", "model"] = "keyword"
    keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_KEYWORDS))

    @field_validator("keywords", mode="before")
    @classmethod
    def _parse_keywords(cls, value: Any) -> Any:
        return _split_list(value)


class TelegramConfig(BaseModel):
    """Telegram bot configuration."""
    bot_token: str = ""
    known_user_ids: List[int] = Field(default_factory=list)

    @field_validator("known_user_ids", mode="before")
    @classmethod
    def _parse_user_ids(cls, value: Any) -> Any:
        return _split_list(value)


class PathsConfig(BaseModel):
    """Paths configuration."""
    root: Path = Field(default_factory=lambda: Path(__file__).parent.parent.parent)
    logs: Optional[Path] = None

    def model_post_init(self, __context) -> None:
        """Set default paths relative to root."""
        if self.logs is None:
            self.logs = self.root / "logs"


class Config(BaseModel):
    """Main configuration container."""
    system: SystemConfig = Field(default_factory=SystemConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    dialogue: DialogueConfig = Field(default_factory=DialogueConfig)
    images: ImagesConfig = Field(default_factory=ImagesConfig)
    intent: IntentConfig = Field(default_factory=IntentConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

# Plain variable names kept for existing deployments
LEGACY_ENV_KEYS = {
    "OPENAI_KEY": ("llm", "api_key"),
    "TELEGRAM_BOT_TOKEN": ("telegram", "bot_token"),
    "TELEGRAM_USER_ID": ("telegram", "known_user_ids"),
}


def find_config_file() -> Optional[Path]:
    """Find the config.yml file, searching up the directory tree."""
    current = Path(__file__).parent

    # Search up to 5 levels
    for _ in range(5):
        config_path = current / "config.yml"
        if config_path.exists():
            return config_path
        current = current.parent

    cwd_config = Path.cwd() / "config.yml"
    if cwd_config.exists():
        return cwd_config

    return None


def load_yaml_config(config_path: Path) -> dict:
    """Load configuration from YAML file."""
    try:
        with open(config_path, "r") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not load config from {config_path}: {e}") from e


def apply_env_overrides(config_dict: dict, environ: Optional[Dict[str, str]] = None) -> dict:
    """Apply environment variable overrides to config dictionary.

    Environment variables are mapped using RELAYBOT_ prefix and double underscores
    for nesting. For example:
    - RELAYBOT_DIALOGUE__MAX_LENGTH=21 -> config["dialogue"]["max_length"] = "21"
    - RELAYBOT_LLM__MODEL_NAME=... -> config["llm"]["model_name"] = "..."

    Values stay strings; pydantic coerces them to the field types.
    """
    environ = os.environ if environ is None else environ

    for key, (section, setting) in LEGACY_ENV_KEYS.items():
        value = environ.get(key)
        if value:
            config_dict.setdefault(section, {})[setting] = value

    prefix = "RELAYBOT_"

    for key, value in environ.items():
        if not key.startswith(prefix):
            continue

        config_key = key[len(prefix):].lower()
        parts = config_key.split("__")

        if len(parts) == 1:
            config_dict[parts[0]] = value
        elif len(parts) == 2:
            section, setting = parts
            if not isinstance(config_dict.get(section), dict):
                config_dict[section] = {}
            config_dict[section][setting] = value

    return config_dict


def load_config(config_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> Config:
    """Load configuration from YAML file and environment variables.

    Raises:
        ConfigurationError: If the merged configuration is invalid

    Returns:
        Config: Validated configuration object
    """
    config_path = config_path or find_config_file()
    if config_path:
        config_dict = load_yaml_config(config_path)
    else:
        config_dict = {}

    config_dict = apply_env_overrides(config_dict, environ)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


# =============================================================================
# Global Configuration Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    This function loads the configuration on first call and caches it.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config

