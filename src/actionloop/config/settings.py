"""Configuration management for actionloop.

Loads settings from a YAML configuration file with environment variable
overrides for sensitive values (API keys). Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/actionloop.yaml")


class ModelConfig(BaseModel):
    provider: Literal["anthropic", "openai"] = Field(default="openai")
    model: str = Field(default="gpt-4o")
    base_url: str | None = Field(default=None)
    max_tokens: int = Field(default=1024, gt=0)
    system_prompt_override: str | None = Field(default=None)
    max_retries: int = Field(default=0, ge=0, description="Retries on backend failure; 0 disables")
    retry_backoff: float = Field(default=1.0, ge=0)


class BrowserConfig(BaseModel):
    base_url: str = Field(default="http://localhost:9222")
    timeout: float = Field(default=30.0, gt=0)


class AgentConfig(BaseModel):
    max_steps: int | None = Field(default=None, gt=0, description="Model-step bound; None is unbounded")
    concurrent_actions: bool = Field(default=True)
    action_timeout: float | None = Field(default=None, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the actionloop system.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically. Keyword arguments, which is how
    load_settings passes the YAML data, rank below the environment and
    the .env file.
    """

    model_config = {
        "env_prefix": "ACTIONLOOP_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # API Keys
    anthropic_api_key: SecretStr = Field(default=SecretStr(""))
    openai_api_key: SecretStr = Field(default=SecretStr(""))
    openrouter_api_key: SecretStr = Field(default=SecretStr(""))

    # Configuration sections
    model: ModelConfig = Field(default_factory=ModelConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    # Load .env file manually for non-prefixed vars
    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    or_key = os.environ.get("OPENROUTER_API_KEY", "")
    or_base_url = os.environ.get("OPENROUTER_BASE_URL", "")
    model_name = os.environ.get("ACTIONLOOP_MODEL_NAME", "")

    if or_key:
        yaml_data["openrouter_api_key"] = or_key

    if "model" not in yaml_data:
        yaml_data["model"] = {}

    if or_key and not yaml_data["model"].get("provider"):
        yaml_data["model"]["provider"] = "openai"

    if or_base_url:
        yaml_data["model"]["base_url"] = or_base_url

    if model_name:
        yaml_data["model"]["model"] = model_name
