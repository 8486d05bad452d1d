"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, actionkit.toml only contains
overrides. A project needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel


class MessagesConfig(BaseModel):
    """[messages] section."""

    model_config = {"frozen": True}

    default_error: str = "Something went wrong"
    default_success: str = "Action completed successfully"


class ValidationConfig(BaseModel):
    """[validation] section."""

    model_config = {"frozen": True}

    allow_mocks_in_test: bool = True


class BatchConfig(BaseModel):
    """[batch] section."""

    model_config = {"frozen": True}

    log_progress: bool = True


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
