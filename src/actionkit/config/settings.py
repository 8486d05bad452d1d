"""Unified settings: init kwargs, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  (explicit overrides from the embedding application)
  2. Env vars     (``ACTIONKIT_*`` prefix, ``__`` for nested sections)
  3. TOML file    (``actionkit.toml`` discovered via walk-up)
  4. Code defaults baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from actionkit.config.discovery import find_config
from actionkit.config.models import BatchConfig, MessagesConfig, PluginsConfig, ValidationConfig
from actionkit.errors import ConfigurationError


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from an ``actionkit.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise ConfigurationError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class ActionkitSettings(BaseSettings):
    """Settings for everything actionkit does at definition and call time.

    Attributes:
        env: Runtime environment; ``test`` relaxes type checks for mocks.
        config_path: The TOML file the settings were read from, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "ACTIONKIT_",
        "env_nested_delimiter": "__",
    }

    env: Literal["development", "test", "production"] = "development"
    config_path: Path | None = None
    verbose: bool = False
    log_json: bool = False

    messages: MessagesConfig = Field(default_factory=MessagesConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> ActionkitSettings:
        """Discover ``actionkit.toml`` (or use *config_path*) and merge *overrides*."""
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(start)

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None


_settings: ActionkitSettings | None = None
_settings_lock = threading.Lock()


def get_settings() -> ActionkitSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = ActionkitSettings.load()
    return _settings


def configure(settings: ActionkitSettings | None = None, **overrides: Any) -> ActionkitSettings:
    """Replace the process-wide settings.

    Pass a prebuilt *settings* object, or keyword *overrides* to load a
    fresh one. Returns the settings now in effect.
    """
    global _settings
    with _settings_lock:
        _settings = settings if settings is not None else ActionkitSettings.load(**overrides)
    return _settings
