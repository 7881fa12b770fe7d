from __future__ import annotations

import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _validate_env_var_name(value: str) -> str:
    name = (value or "").strip()
    if not _ENV_NAME_RE.fullmatch(name):
        raise ValueError("must be a valid environment variable name")
    return name


def _validate_http_url(value: str) -> str:
    url = (value or "").strip().rstrip("/")
    if not (url.startswith("https://") or url.startswith("http://")):
        raise ValueError("must be an http(s) URL")
    return url


PositiveInt = Annotated[int, Field(ge=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]


class TwitterConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    bearer_token_env: str = "TWITTER_BEARER_TOKEN"
    api_base_url: str = "https://api.twitter.com"
    timeout_seconds: float = Field(10.0, gt=0.0)
    # The user timeline endpoint accepts 5..100 results per page.
    max_results: int = Field(5, ge=5, le=100)
    retry_max_attempts: PositiveInt = 4
    retry_base_delay_seconds: NonNegativeFloat = 0.5
    retry_max_delay_seconds: NonNegativeFloat = 20.0
    # Total sleep allowed across retries of one request; 0 means unbounded.
    retry_wait_budget_seconds: NonNegativeFloat = 90.0

    @field_validator("bearer_token_env")
    @classmethod
    def _token_env_must_be_valid(cls, v: str) -> str:
        return _validate_env_var_name(v)

    @field_validator("api_base_url")
    @classmethod
    def _api_base_must_be_url(cls, v: str) -> str:
        return _validate_http_url(v)

    @model_validator(mode="after")
    def _delays_must_be_ordered(self) -> "TwitterConfig":
        if self.retry_max_delay_seconds < self.retry_base_delay_seconds:
            raise ValueError("retry_max_delay_seconds must be >= retry_base_delay_seconds")
        return self


class SecretsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    sops_file: str | None = None
    sops_binary: str = "sops"

    @field_validator("sops_file")
    @classmethod
    def _blank_file_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class RenderConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    offset_unit: Literal["codepoint", "utf16"] = "codepoint"
    profile_base_url: str = "https://twitter.com"
    hashtag_base_url: str = "https://twitter.com/hashtag"

    @field_validator("profile_base_url", "hashtag_base_url")
    @classmethod
    def _base_urls_must_be_urls(cls, v: str) -> str:
        return _validate_http_url(v)


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    title_template: str = "@{username}"
    include_pdf: bool = False
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = "INFO"

    @field_validator("title_template")
    @classmethod
    def _title_must_not_be_blank(cls, v: str) -> str:
        t = (v or "").strip()
        if not t:
            raise ValueError("must be non-empty")
        return t


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    twitter: TwitterConfig = Field(default_factory=TwitterConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
