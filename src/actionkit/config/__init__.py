"""Configuration layer: settings, discovery, and logging."""

from actionkit.config.logging import configure_logging
from actionkit.config.settings import ActionkitSettings, configure, get_settings

__all__ = ["ActionkitSettings", "configure", "configure_logging", "get_settings"]
