"""Typed application settings with Pydantic validation."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_STORE_URL = "http://127.0.0.1:9000"
DEFAULT_PAGE_SIZE = 15
DEFAULT_SORT = ("-date",)
ALERT_SECTION = "alert-section"


def normalise_sort(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Return *value* as a list of ``+field``/``-field`` sort keys."""
    if value is None:
        return list(DEFAULT_SORT)
    items = [value] if isinstance(value, str) else list(value)
    result: list[str] = []
    for item in items:
        text = str(item).strip()
        if not text:
            continue
        if text[0] not in "+-":
            text = f"+{text}"
        if len(text) == 1:
            raise ValueError("sort key requires a field name")
        result.append(text)
    return result or list(DEFAULT_SORT)


class StoreSettings(BaseModel):
    """Settings for connecting to the remote alert store."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    base_url: str = Field(DEFAULT_STORE_URL, alias="url")
    api_key: str | None = None
    timeout_seconds: float = Field(30.0, gt=0)
    verify_tls: bool = True

    @field_validator("base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str:
        if value is None:
            return DEFAULT_STORE_URL
        text = str(value).strip().rstrip("/")
        return text or DEFAULT_STORE_URL

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class ListSettings(BaseModel):
    """Defaults applied to a list view before its context is restored."""

    model_config = ConfigDict(validate_assignment=True)

    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=1000)
    sort: list[str] = Field(default_factory=lambda: list(DEFAULT_SORT))
    show_filters: bool = False
    show_stats: bool = False

    @field_validator("sort", mode="before")
    @classmethod
    def _normalise_sort(cls, value: str | list[str] | None) -> list[str]:
        return normalise_sort(value)


class UISettings(BaseModel):
    """Settings related to presentation of messages and logs."""

    model_config = ConfigDict(validate_assignment=True)

    language: str | None = None
    log_level: int = Field(default=logging.INFO)

    @field_validator("language", mode="before")
    @classmethod
    def _normalise_language(
        cls, value: str | None,
    ) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None


class AppSettings(BaseModel):
    """Aggregate settings for the application."""

    model_config = ConfigDict(validate_assignment=True)

    store: StoreSettings = Field(default_factory=StoreSettings)
    alerts: ListSettings = Field(default_factory=ListSettings)
    ui: UISettings = Field(default_factory=UISettings)

    def to_dict(self) -> dict:
        """Return settings as a plain dictionary."""
        return self.model_dump()


def load_app_settings(path: str | Path) -> AppSettings:
    """Load :class:`AppSettings` from *path* with validation.

    Format is detected by file extension: ``.toml`` uses :mod:`tomllib`,
    everything else is treated as JSON.  Any validation errors are wrapped into
    :class:`ValueError` with a human-friendly message.
    """
    p = Path(path)
    with p.open("rb") as fh:
        data = tomllib.load(fh) if p.suffix.lower() == ".toml" else json.load(fh)
    try:
        return AppSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc
