"""Configuration management for lmstudio-oss.

Holds the model provider table and the default model name, loaded from
``~/.lmstudio_oss.json`` and merged over the built-in LM Studio provider.
"""

import json
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field

from lmstudio_oss.core.errors import ConfigurationMissingError
from lmstudio_oss.utils.log import get_logger


logger = get_logger()

LMSTUDIO_OSS_PROVIDER_ID = "lmstudio"
# Default model fetched when the caller does not pick one.
DEFAULT_OSS_MODEL = "openai/gpt-oss-20b"
DEFAULT_LMSTUDIO_PORT = 1234

BASE_URL_ENV_VAR = "LMSTUDIO_OSS_BASE_URL"
PORT_ENV_VAR = "LMSTUDIO_OSS_PORT"


class ModelProviderInfo(BaseModel):
    """How to reach a model-serving backend."""

    name: str
    base_url: Optional[str] = None


class OssConfig(BaseModel):
    """Configuration consumed by the readiness check."""

    model_config = {"protected_namespaces": ()}

    model: str = DEFAULT_OSS_MODEL
    model_providers: Dict[str, ModelProviderInfo] = Field(default_factory=dict)


def _default_base_url(env: Mapping[str, str]) -> str:
    explicit = (env.get(BASE_URL_ENV_VAR) or "").strip()
    if explicit:
        return explicit

    port = DEFAULT_LMSTUDIO_PORT
    raw_port = (env.get(PORT_ENV_VAR) or "").strip()
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            logger.warning(
                "[config] Ignoring invalid %s value %r",
                PORT_ENV_VAR,
                raw_port,
            )
    return f"http://localhost:{port}/v1"


def built_in_model_providers(env: Optional[Mapping[str, str]] = None) -> Dict[str, ModelProviderInfo]:
    """Return the providers that exist without any user configuration."""
    source = os.environ if env is None else env
    return {
        LMSTUDIO_OSS_PROVIDER_ID: ModelProviderInfo(
            name="LM Studio",
            base_url=_default_base_url(source),
        )
    }


def get_provider(config: OssConfig, provider_id: str = LMSTUDIO_OSS_PROVIDER_ID) -> ModelProviderInfo:
    """Look up a provider entry, raising if it is not configured."""
    provider = config.model_providers.get(provider_id)
    if provider is None:
        raise ConfigurationMissingError(f"Built-in provider {provider_id} not found")
    return provider


def require_base_url(provider: ModelProviderInfo) -> str:
    """Return the provider base URL, raising if it is unset or blank."""
    base_url = (provider.base_url or "").strip()
    if not base_url:
        raise ConfigurationMissingError(f"Provider {provider.name} must have a base_url")
    return base_url


class ConfigManager:
    """Loads and saves the on-disk configuration."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path or Path.home() / ".lmstudio_oss.json"
        self._config: Optional[OssConfig] = None

    def _read_user_config(self) -> OssConfig:
        """Read only what the user wrote to disk, without built-in providers."""
        data: dict = {}
        if self.config_path.exists():
            try:
                loaded = json.loads(self.config_path.read_text(encoding="utf-8"))
                if isinstance(loaded, dict):
                    data = loaded
                else:
                    logger.warning(
                        "[config] Ignoring non-object config file",
                        extra={"path": str(self.config_path)},
                    )
            except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
                logger.warning(
                    "Error loading config: %s: %s",
                    type(e).__name__,
                    e,
                    extra={"path": str(self.config_path)},
                )
        else:
            logger.debug(
                "[config] Config not found; using defaults",
                extra={"path": str(self.config_path)},
            )

        try:
            user_config = OssConfig(**data)
        except (ValueError, TypeError) as e:
            logger.warning(
                "Invalid config contents: %s: %s",
                type(e).__name__,
                e,
                extra={"path": str(self.config_path)},
            )
            user_config = OssConfig()
        return user_config

    def load(self) -> OssConfig:
        """Load the configuration, merging user providers over the built-ins."""
        if self._config is not None:
            return self._config

        user_config = self._read_user_config()
        providers = built_in_model_providers()
        providers.update(user_config.model_providers)
        self._config = OssConfig(model=user_config.model, model_providers=providers)
        logger.debug(
            "[config] Loaded configuration",
            extra={
                "path": str(self.config_path),
                "model": self._config.model,
                "providers": sorted(providers),
            },
        )
        return self._config

    def save(self, config: OssConfig) -> None:
        """Persist configuration as pretty JSON.

        The next ``load`` re-reads the file so built-in providers are merged again.
        """
        self._config = None
        self.config_path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("[config] Saved configuration", extra={"path": str(self.config_path)})

    def set_default_model(self, model: str) -> OssConfig:
        """Persist a new default model, keeping the rest of the user file."""
        user_config = self._read_user_config()
        user_config.model = model
        self.save(user_config)
        return self.load()


# Global instance
config_manager = ConfigManager()


def get_config() -> OssConfig:
    """Get the effective configuration."""
    return config_manager.load()
