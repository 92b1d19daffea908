"""Application settings: packaged YAML defaults, optional user file, environment."""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from athanor.layout.engine import LayoutConfig
from athanor.models import GenerationParams

_DEFAULTS_PATH = Path(__file__).parent / "default_settings.yml"
_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"


class ApiSettings(BaseModel):
    api_key: str = ""
    model_name: str = "meta-llama/llama-3.1-405b"


class GenerationSettings(BaseModel):
    temperature: float = 0.7
    max_tokens: int = 256
    top_p: float = 0.9
    top_k: int = 40
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0

    def to_params(self) -> GenerationParams:
        return GenerationParams(**self.model_dump())


class InterfaceSettings(BaseModel):
    default_generation_count: int = Field(default=3, ge=1, le=10)
    auto_save: bool = False


class Settings(BaseModel):
    api: ApiSettings = Field(default_factory=ApiSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    interface: InterfaceSettings = Field(default_factory=InterfaceSettings)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    db_path: str = "athanor.db"


def load_settings(path: str | Path | None = None) -> Settings:
    """Build settings from defaults, an optional YAML override, and the environment.

    ``path`` falls back to the ATHANOR_SETTINGS environment variable. Keys
    missing from the override keep their defaults.
    """
    load_dotenv(_ENV_FILE)

    data = _read_yaml(_DEFAULTS_PATH)
    override_path = path or os.environ.get("ATHANOR_SETTINGS")
    if override_path:
        data = _merge(data, _read_yaml(Path(override_path)))

    if os.environ.get("OPENROUTER_API_KEY"):
        data.setdefault("api", {})["api_key"] = os.environ["OPENROUTER_API_KEY"]
    if os.environ.get("ATHANOR_MODEL"):
        data.setdefault("api", {})["model_name"] = os.environ["ATHANOR_MODEL"]
    if os.environ.get("ATHANOR_DB_PATH"):
        data["db_path"] = os.environ["ATHANOR_DB_PATH"]

    return Settings.model_validate(data)


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
