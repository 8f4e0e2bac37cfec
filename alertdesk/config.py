"""Application configuration manager and filter-context persistence."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .settings import (
    DEFAULT_PAGE_SIZE,
    AppSettings,
    ListSettings,
    StoreSettings,
    UISettings,
    normalise_sort,
)

logger = logging.getLogger(__name__)
_MISSING = object()

_CONFIG_DIRECTORY = Path.home() / ".alertdesk"
_CONTEXT_PREFIX = "context:"


def _slugify_app_name(app_name: str) -> str:
    """Return filesystem-friendly slug derived from *app_name*."""

    text = app_name.strip().lower()
    if not text:
        return "default"
    slug = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    return slug or "default"


def _default_config_path(app_name: str) -> Path:
    """Return preferred config path under ~/.alertdesk per application name."""

    if app_name == "AlertDesk":
        filename = "config.json"
    else:
        filename = f"config-{_slugify_app_name(app_name)}.json"
    return _CONFIG_DIRECTORY / filename


@dataclass(frozen=True)
class FieldBinding:
    """Describe mapping between config field name and Pydantic settings."""

    section: Literal["store", "alerts", "ui"]
    attribute: str


FIELD_BINDINGS: dict[str, FieldBinding] = {
    "store_url": FieldBinding("store", "base_url"),
    "store_api_key": FieldBinding("store", "api_key"),
    "store_timeout": FieldBinding("store", "timeout_seconds"),
    "store_verify_tls": FieldBinding("store", "verify_tls"),
    "page_size": FieldBinding("alerts", "page_size"),
    "sort": FieldBinding("alerts", "sort"),
    "show_filters": FieldBinding("alerts", "show_filters"),
    "show_stats": FieldBinding("alerts", "show_stats"),
    "language": FieldBinding("ui", "language"),
    "log_level": FieldBinding("ui", "log_level"),
}


class ConfigManager:
    """JSON-backed wrapper around :class:`AppSettings`.

    Settings overrides live under ``settings``; free-form entries such as
    persisted filter contexts live under ``raw``.
    """

    FIELD_BINDINGS: ClassVar[dict[str, FieldBinding]] = FIELD_BINDINGS

    def __init__(
        self,
        app_name: str = "AlertDesk",
        path: Path | str | None = None,
    ) -> None:
        """Initialise configuration manager and load persisted state."""
        if path is not None:
            self._path = Path(path)
        else:
            self._path = _default_config_path(app_name)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._settings = AppSettings()
        self._overrides: dict[str, dict[str, Any]] = {"store": {}, "alerts": {}, "ui": {}}
        self._raw: dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # internal helpers
    def _load(self) -> None:
        if self._path.exists():
            try:
                with self._path.open("r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Failed to load config %s: %s", self._path, exc)
            else:
                overrides = data.get("settings", {})
                if isinstance(overrides, dict):
                    for section in self._overrides:
                        section_data = overrides.get(section, {})
                        if isinstance(section_data, dict):
                            self._overrides[section] = {
                                key: deepcopy(value)
                                for key, value in section_data.items()
                            }
                raw = data.get("raw", {})
                if isinstance(raw, dict):
                    self._raw = {key: deepcopy(value) for key, value in raw.items()}
        self._rebuild_settings()

    def _rebuild_settings(self) -> None:
        base = AppSettings()
        merged = {
            "store": base.store.model_dump(mode="python"),
            "alerts": base.alerts.model_dump(mode="python"),
            "ui": base.ui.model_dump(mode="python"),
        }
        for section, overrides in self._overrides.items():
            merged[section].update(overrides)
        self._settings = AppSettings.model_validate(merged)
        # normalise overrides to validated values
        for section, overrides in self._overrides.items():
            model_section = getattr(self._settings, section)
            self._overrides[section] = {
                key: deepcopy(getattr(model_section, key)) for key in overrides
            }

    def _set_override(self, binding: FieldBinding, value: Any) -> None:
        section_overrides = dict(self._overrides[binding.section])
        section_overrides[binding.attribute] = deepcopy(value)
        self._overrides[binding.section] = section_overrides
        self._rebuild_settings()

    def _serialize_overrides(self) -> dict[str, dict[str, Any]]:
        return {
            section: {key: deepcopy(value) for key, value in overrides.items()}
            for section, overrides in self._overrides.items()
        }

    # ------------------------------------------------------------------
    # persistence
    def flush(self) -> None:
        """Persist configuration to disk."""
        payload = {
            "settings": self._serialize_overrides(),
            "raw": {key: deepcopy(value) for key, value in self._raw.items()},
        }
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, sort_keys=True)
        tmp_path.replace(self._path)

    # ------------------------------------------------------------------
    # schema access helpers
    def get_value(self, name: str, default: Any = _MISSING) -> Any:
        """Return configuration value by *name* honouring overrides."""
        binding = self.FIELD_BINDINGS.get(name)
        if binding is not None:
            if default is not _MISSING and binding.attribute not in self._overrides[binding.section]:
                return deepcopy(default)
            return deepcopy(
                getattr(getattr(self._settings, binding.section), binding.attribute)
            )
        if name in self._raw:
            return deepcopy(self._raw[name])
        if default is not _MISSING:
            return deepcopy(default)
        raise KeyError(name)

    def set_value(self, name: str, value: Any) -> None:
        """Set configuration entry *name* to *value*."""
        binding = self.FIELD_BINDINGS.get(name)
        if binding is not None:
            self._set_override(binding, value)
            return
        self._raw[name] = deepcopy(value)

    # ------------------------------------------------------------------
    # typed sections
    def get_app_settings(self) -> AppSettings:
        return self._settings.model_copy(deep=True)

    def get_store_settings(self) -> StoreSettings:
        return self._settings.store.model_copy(deep=True)

    def get_list_settings(self) -> ListSettings:
        return self._settings.alerts.model_copy(deep=True)

    def get_ui_settings(self) -> UISettings:
        return self._settings.ui.model_copy(deep=True)

    # ------------------------------------------------------------------
    # filter contexts
    def get_context(self, key: str) -> dict[str, Any] | None:
        """Return the raw filter context stored under *key*."""
        value = self._raw.get(_CONTEXT_PREFIX + key)
        return deepcopy(value) if isinstance(value, dict) else None

    def set_context(self, key: str, data: dict[str, Any]) -> None:
        """Store filter context *data* under *key* without flushing."""
        self._raw[_CONTEXT_PREFIX + key] = deepcopy(data)


class FilteringContext(BaseModel):
    """Persisted view state of a filterable list."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    show_filters: bool = Field(False, alias="showFilters")
    show_stats: bool = Field(False, alias="showStats")
    page_size: int = Field(DEFAULT_PAGE_SIZE, alias="pageSize", ge=1)
    sort: list[str] = Field(default_factory=lambda: normalise_sort(None))
    active_filters: dict[str, Any] | None = Field(None, alias="activeFilters")

    @field_validator("sort", mode="before")
    @classmethod
    def _normalise_sort(cls, value: str | list[str] | None) -> list[str]:
        return normalise_sort(value)

    @classmethod
    def from_list_settings(cls, settings: ListSettings) -> FilteringContext:
        """Return a context seeded from list defaults."""
        return cls(
            show_filters=settings.show_filters,
            show_stats=settings.show_stats,
            page_size=settings.page_size,
            sort=list(settings.sort),
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ContextStore(Protocol):
    """Keyed asynchronous store for filter contexts."""

    async def load(self, key: str) -> dict[str, Any] | None:
        """Return the stored context for *key* or ``None``."""

    async def save(self, key: str, data: dict[str, Any]) -> None:
        """Persist *data* under *key*."""


class MemoryContextStore:
    """Context store keeping data for the lifetime of the process."""

    def __init__(self, initial: dict[str, dict[str, Any]] | None = None) -> None:
        self._data: dict[str, dict[str, Any]] = deepcopy(initial or {})
        self.saves = 0

    async def load(self, key: str) -> dict[str, Any] | None:
        value = self._data.get(key)
        return deepcopy(value) if value is not None else None

    async def save(self, key: str, data: dict[str, Any]) -> None:
        self._data[key] = deepcopy(data)
        self.saves += 1


class ConfigContextStore:
    """Context store writing through :class:`ConfigManager`."""

    def __init__(self, config: ConfigManager) -> None:
        self._config = config
        self._lock = asyncio.Lock()

    async def load(self, key: str) -> dict[str, Any] | None:
        return self._config.get_context(key)

    async def save(self, key: str, data: dict[str, Any]) -> None:
        async with self._lock:
            self._config.set_context(key, data)
            await asyncio.to_thread(self._config.flush)
