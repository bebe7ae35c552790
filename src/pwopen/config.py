# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime configuration read from PWOPEN_* environment variables.

Leaf module. The CLI calls ``load_config()`` once before launching the
browser; an invalid value is fatal and reported as one aggregate message.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

# Upper bound for the settle detector's navigation-idle window (ms)
MAX_SETTLE_MS = 5000

ENV_VARS = (
    "PWOPEN_TIMEOUT_MS",
    "PWOPEN_VIEWPORT_WIDTH",
    "PWOPEN_VIEWPORT_HEIGHT",
    "PWOPEN_USER_AGENT",
    "PWOPEN_NAVIGATION_RETRIES",
    "PWOPEN_RENDER_WAIT_MS",
)


class AppConfig(BaseModel):
    """Immutable settings shared by every page of a run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    timeout_ms: int = Field(default=15000, gt=0, alias="PWOPEN_TIMEOUT_MS")
    viewport_width: int = Field(default=1280, gt=0, alias="PWOPEN_VIEWPORT_WIDTH")
    viewport_height: int = Field(default=720, gt=0, alias="PWOPEN_VIEWPORT_HEIGHT")
    user_agent: str | None = Field(default=None, min_length=1, alias="PWOPEN_USER_AGENT")
    navigation_retries: int = Field(default=0, ge=0, alias="PWOPEN_NAVIGATION_RETRIES")
    render_wait_ms: int = Field(default=200, ge=0, alias="PWOPEN_RENDER_WAIT_MS")

    @field_validator("user_agent", mode="before")
    @classmethod
    def _strip_user_agent(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @property
    def settle_timeout_ms(self) -> int:
        """Hard ceiling for each settle-detection wait."""
        return min(MAX_SETTLE_MS, self.timeout_ms)


def format_validation_error(error: ValidationError) -> str:
    """Join pydantic errors into ``VAR: message, VAR: message``."""
    parts = []
    for issue in error.errors():
        path = ".".join(str(p) for p in issue.get("loc", ())) or "config"
        parts.append(f"{path}: {issue['msg']}")
    return ", ".join(parts)


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build ``AppConfig`` from the environment.

    Empty or whitespace-only variables count as unset.

    Raises:
        ConfigError: one or more variables failed validation.
    """
    env = os.environ if environ is None else environ
    values: dict[str, str] = {}
    for name in ENV_VARS:
        raw = env.get(name)
        if raw is not None and raw.strip():
            values[name] = raw.strip()

    try:
        return AppConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {format_validation_error(exc)}") from None
