"""Active facet filters of a list view and their persisted context."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from typing import Any

from ..config import ContextStore, FilteringContext
from ..core.filters import (
    ActiveFilter,
    DateRange,
    FilterKind,
    FilterRegistry,
    FilterValue,
    LabeledValue,
)
from ..core.model import SEVERITY_LABELS
from ..settings import ALERT_SECTION, ListSettings

logger = logging.getLogger("alertdesk.ui.filters")


class FilterModel:
    """Hold active filters and view preferences for one list section.

    Every mutating coroutine returns once the resulting context has been
    written to the context store, so callers may rebuild the query right
    after awaiting it.
    """

    def __init__(
        self,
        registry: FilterRegistry,
        store: ContextStore,
        section: str = ALERT_SECTION,
        *,
        defaults: ListSettings | None = None,
        tz: datetime.tzinfo | None = None,
    ) -> None:
        self.registry = registry
        self.section = section
        self._store = store
        self._defaults = defaults or ListSettings()
        self._tz = tz
        self._context = FilteringContext.from_list_settings(self._defaults)
        self._active: dict[str, ActiveFilter] = registry.default_filters()

    # read access -----------------------------------------------------
    @property
    def context(self) -> FilteringContext:
        """Return a copy of the current view context."""
        context = self._context.model_copy(deep=True)
        context.active_filters = self._dump_active()
        return context

    @property
    def active_filters(self) -> dict[str, ActiveFilter]:
        """Return a copy of the active filter map."""
        return dict(self._active)

    def get_severities(self) -> list[str]:
        """Return severity labels ordered from lowest to highest."""
        return [SEVERITY_LABELS[key] for key in sorted(SEVERITY_LABELS)]

    def build_query(self) -> str:
        """Serialize active filters, ``""`` when none constrain the list."""
        return self.registry.build_query(self._active)

    # context -----------------------------------------------------------
    async def init_context(self) -> FilteringContext:
        """Restore the stored context or fall back to defaults."""
        stored = await self._store.load(self.section)
        if stored is None:
            self._context = FilteringContext.from_list_settings(self._defaults)
            self._active = self.registry.default_filters()
            return self.context
        try:
            context = FilteringContext.model_validate(stored)
        except ValueError as exc:
            logger.warning("Ignoring invalid context for %s: %s", self.section, exc)
            context = FilteringContext.from_list_settings(self._defaults)
        self._context = context
        if context.active_filters is None:
            self._active = self.registry.default_filters()
        else:
            self._active = self._load_active(context.active_filters)
        return self.context

    def _load_active(self, raw: Mapping[str, Any]) -> dict[str, ActiveFilter]:
        active: dict[str, ActiveFilter] = {}
        for name, value in raw.items():
            if name not in self.registry:
                logger.warning("Dropping unknown stored filter %s", name)
                continue
            try:
                loaded = self.registry.load_value(name, value)
            except (TypeError, ValueError) as exc:
                logger.warning("Dropping malformed stored filter %s: %s", name, exc)
                continue
            active[name] = ActiveFilter(field=name, value=loaded)
        return active

    def _dump_active(self) -> dict[str, Any]:
        return {
            name: self.registry.dump_value(name, current.value)
            for name, current in self._active.items()
        }

    async def _persist(self) -> None:
        await self._store.save(self.section, self.context.to_dict())

    # filters -----------------------------------------------------------
    async def add_filter_value(self, field: str, raw: Any) -> None:
        """Merge *raw* into the filter on *field*.

        List facets gain the value unless an entry with the same text is
        present, date facets are replaced by the calendar day containing
        *raw*, string facets are replaced. A value the facet's conversion
        rule cannot map is dropped without error.
        """
        definition = self.registry.get(field)
        stored: Any = None
        if definition.convert is not None:
            stored = self.registry.convert(field, raw)
            if stored is None:
                logger.debug("No %s value matches %r", field, raw)
                return

        if definition.kind is FilterKind.LIST:
            text = str(raw).strip()
            if not text:
                return
            current = self._active.get(field)
            entries: tuple[LabeledValue, ...] = ()
            if current is not None and isinstance(current.value, tuple):
                entries = current.value
            if any(entry.text == text for entry in entries):
                return
            value: FilterValue = entries + (LabeledValue(text=text, value=stored),)
        elif definition.kind is FilterKind.DATE:
            value = raw if isinstance(raw, DateRange) else DateRange.for_day(raw, tz=self._tz)
        else:
            value = str(stored if stored is not None else raw)
        self._active[field] = ActiveFilter(field=field, value=value)
        await self._persist()

    async def add_filter(self, field: str, value: FilterValue) -> None:
        """Replace the filter on *field* with *value* as is."""
        self.registry.get(field)
        self._active[field] = ActiveFilter(field=field, value=value)
        await self._persist()

    async def remove_filter(self, field: str) -> None:
        """Drop the filter on *field* if it is active."""
        if self._active.pop(field, None) is None:
            return
        await self._persist()

    async def clear_filters(self) -> None:
        """Reset active filters to the registry defaults."""
        self._active = self.registry.default_filters()
        await self._persist()

    async def set_filters(self, filters: Mapping[str, ActiveFilter | FilterValue]) -> None:
        """Replace the whole active filter map."""
        active: dict[str, ActiveFilter] = {}
        for name, value in filters.items():
            self.registry.get(name)
            if isinstance(value, ActiveFilter):
                active[name] = ActiveFilter(field=name, value=value.value)
            else:
                active[name] = ActiveFilter(field=name, value=value)
        self._active = active
        await self._persist()

    # view preferences --------------------------------------------------
    async def set_sort(self, sort: str | list[str] | tuple[str, ...]) -> None:
        self._context.sort = sort  # type: ignore[assignment]
        await self._persist()

    async def set_page_size(self, page_size: int) -> None:
        if page_size == self._context.page_size:
            return
        self._context.page_size = page_size
        await self._persist()

    async def toggle_filters(self) -> None:
        self._context.show_filters = not self._context.show_filters
        await self._persist()

    async def toggle_stats(self) -> None:
        self._context.show_stats = not self._context.show_stats
        await self._persist()
