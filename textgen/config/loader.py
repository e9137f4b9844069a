"""Load configuration from YAML and environment variables. No hardcoded secrets."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from textgen.models.openai_client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, OpenAIModel

# Default config lives next to this module
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class ModelSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MODEL_", extra="ignore", populate_by_name=True)
    name: OpenAIModel = OpenAIModel.CHATGPT_4O_LATEST
    api_key: str = Field(default="", alias="OPENAI_API_KEY")
    base_url: str = Field(default=DEFAULT_BASE_URL, alias="OPENAI_BASE_URL")
    timeout: float = DEFAULT_TIMEOUT


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TEXTGEN_LOG_", extra="ignore")
    level: str = "INFO"
    use_json: bool = True


class Config(BaseSettings):
    """Application config: YAML + env. Secrets from env only."""

    model_config = SettingsConfigDict(env_nested_delimiter="__", extra="ignore")

    model: ModelSettings = Field(default_factory=ModelSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "Config":
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        yaml_data = _load_yaml(path)
        env_prefix = os.getenv("TEXTGEN_ENV_PREFIX", "")
        if env_prefix:
            yaml_data = _deep_merge(yaml_data, _load_yaml(Path(f"config/{env_prefix}.yaml")))
        api_key = os.getenv("OPENAI_API_KEY")
        if api_key:
            yaml_data.setdefault("model", {})["api_key"] = api_key
        base_url = os.getenv("OPENAI_BASE_URL")
        if base_url:
            yaml_data.setdefault("model", {})["base_url"] = base_url
        log_level = os.getenv("TEXTGEN_LOG_LEVEL")
        if log_level:
            yaml_data.setdefault("logging", {})["level"] = log_level
        return cls(**yaml_data)


def get_config(config_path: str | Path | None = None) -> Config:
    return Config.load(config_path)
