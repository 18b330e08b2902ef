"""Provider configuration.

The API key comes from explicit configuration first and falls back to the
``STORAGE_API_KEY`` environment variable.  Base URLs can be overridden per
endpoint family, which is how tests and local runs point the provider at a
fake instead of the real platform.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

import pydantic
import yaml
from pydantic import BaseModel, Field, field_validator

from keboola_provider.endpoints import EndpointFamily
from keboola_provider.errors import ValidationError
from keboola_provider.jobs import DEFAULT_POLL_INTERVAL

API_KEY_ENV_VAR = "STORAGE_API_KEY"

# KEBOOLA_STORAGE_URL, KEBOOLA_SYRUP_URL, ...
BASE_URL_ENV_VARS = {family: f"KEBOOLA_{family.name}_URL" for family in EndpointFamily}


class ProviderConfig(BaseModel):
    """Settings shared by every resource operation of one provider instance."""

    api_key: str
    base_urls: dict[EndpointFamily, str] = Field(default_factory=dict)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    # None keeps the poller waiting until the job reaches a terminal state.
    job_timeout: Optional[float] = None
    request_timeout: float = 60.0

    @field_validator("api_key")
    @classmethod
    def _strip_api_key(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("api_key must not be empty")
        return value

    @field_validator("base_urls")
    @classmethod
    def _trailing_slash(cls, value: dict[EndpointFamily, str]) -> dict[EndpointFamily, str]:
        return {family: url if url.endswith("/") else f"{url}/" for family, url in value.items()}

    @classmethod
    def load(cls, data: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> "ProviderConfig":
        """Build a config from *data*, filling gaps from the environment."""
        env = os.environ if environ is None else environ
        merged = dict(data)

        if not merged.get("api_key"):
            merged["api_key"] = env.get(API_KEY_ENV_VAR, "")

        base_urls = {
            family: env[var] for family, var in BASE_URL_ENV_VARS.items() if env.get(var)
        }
        for family, url in (merged.get("base_urls") or {}).items():
            try:
                base_urls[EndpointFamily(family)] = url
            except ValueError:
                raise ValidationError(f"Unknown endpoint family in base_urls: {family!r}") from None
        merged["base_urls"] = base_urls

        try:
            return cls.model_validate(merged)
        except pydantic.ValidationError as exc:
            if not merged["api_key"]:
                raise ValidationError(
                    f"No API key configured; set api_key or the {API_KEY_ENV_VAR} environment variable"
                ) from exc
            raise ValidationError(f"Invalid provider configuration: {exc}") from exc

    @classmethod
    def from_env(
        cls,
        api_key: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "ProviderConfig":
        return cls.load({"api_key": api_key} if api_key else {}, environ)

    @classmethod
    def from_file(cls, path: str | Path, environ: Mapping[str, str] | None = None) -> "ProviderConfig":
        """Load a YAML provider configuration file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValidationError(f"Provider configuration in {path} must be a mapping")
        return cls.load(data, environ)
