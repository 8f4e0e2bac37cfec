"""Facet definitions and query rendering for the alert list.

Every facet is described once by a :class:`FilterDefinition`. The
registry turns a mapping of active filters into the query string sent to
the alert store. Rendering dispatches on :class:`FilterKind` only, and
facets are always emitted in declaration order so equal filter maps give
byte-identical queries.
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ..util.time import coerce_datetime, day_bounds, to_epoch_millis
from .model import Severity

__all__ = [
    "ALERT_FILTERS",
    "ActiveFilter",
    "DateRange",
    "FilterDefinition",
    "FilterKind",
    "FilterRegistry",
    "FilterValue",
    "LabeledValue",
]


class FilterKind(str, Enum):
    """Value shape of a facet."""

    STRING = "string"
    LIST = "list"
    DATE = "date"


@dataclass(frozen=True)
class LabeledValue:
    """Single entry of a list facet.

    ``text`` is what the user picked and what duplicates are detected on;
    ``value`` holds the converted code sent to the store when the facet
    defines a conversion rule.
    """

    text: str
    value: str | int | None = None

    @property
    def query_value(self) -> str | int:
        return self.text if self.value is None else self.value


@dataclass(frozen=True)
class DateRange:
    """Closed timestamp range, either bound may be open."""

    start: datetime.datetime | None = None
    end: datetime.datetime | None = None

    @classmethod
    def for_day(
        cls,
        value: datetime.datetime | datetime.date | int | float | str,
        *,
        tz: datetime.tzinfo | None = None,
    ) -> DateRange:
        """Return the range covering the whole calendar day of *value*."""
        start, end = day_bounds(value, tz=tz)
        return cls(start=start, end=end)

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None


FilterValue = Union[str, tuple[LabeledValue, ...], DateRange]


@dataclass(frozen=True)
class FilterDefinition:
    """Static description of one facet.

    ``convert`` maps a raw user value to the stored representation. It may
    return ``None`` or raise :class:`KeyError`/:class:`ValueError` to signal
    that the raw value has no mapping.
    """

    field: str
    kind: FilterKind
    label: str = ""
    default_value: Any = None
    convert: Callable[[Any], Any] | None = None
    free_text: bool = False


@dataclass(frozen=True)
class ActiveFilter:
    """Facet currently constraining the query."""

    field: str
    value: FilterValue


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _render_term(field_name: str, value: str | int) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{field_name}:{value}"
    return f"{field_name}:{_quote(str(value))}"


def _render_string(definition: FilterDefinition, value: FilterValue) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        return ""
    if definition.free_text:
        return text
    return _render_term(definition.field, text)


def _render_list(definition: FilterDefinition, value: FilterValue) -> str:
    entries = tuple(value) if isinstance(value, tuple) else ()
    terms = [_render_term(definition.field, entry.query_value) for entry in entries]
    if not terms:
        return ""
    if len(terms) == 1:
        return terms[0]
    return "(" + " OR ".join(terms) + ")"


def _render_date(definition: FilterDefinition, value: FilterValue) -> str:
    if not isinstance(value, DateRange) or value.is_empty:
        return ""
    start = "*" if value.start is None else str(to_epoch_millis(value.start))
    end = "*" if value.end is None else str(to_epoch_millis(value.end))
    return f"{definition.field}:[ {start} TO {end} ]"


_RENDERERS: dict[FilterKind, Callable[[FilterDefinition, FilterValue], str]] = {
    FilterKind.STRING: _render_string,
    FilterKind.LIST: _render_list,
    FilterKind.DATE: _render_date,
}


class FilterRegistry:
    """Ordered catalogue of facet definitions and their default filters."""

    def __init__(
        self,
        definitions: Iterable[FilterDefinition],
        *,
        defaults: Mapping[str, FilterValue] | None = None,
    ) -> None:
        self._definitions: dict[str, FilterDefinition] = {}
        for definition in definitions:
            if definition.field in self._definitions:
                raise ValueError(f"duplicate facet: {definition.field}")
            self._definitions[definition.field] = definition
        self._defaults: dict[str, FilterValue] = {}
        for name, value in (defaults or {}).items():
            self.get(name)
            self._defaults[name] = value

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._definitions

    def __iter__(self) -> Iterator[FilterDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def get(self, field_name: str) -> FilterDefinition:
        """Return the definition for *field_name* or raise :class:`KeyError`."""
        try:
            return self._definitions[field_name]
        except KeyError:
            raise KeyError(f"unknown filter field: {field_name}") from None

    def default_filters(self) -> dict[str, ActiveFilter]:
        """Return a fresh copy of the default active filters."""
        return {
            name: ActiveFilter(field=name, value=value)
            for name, value in self._defaults.items()
        }

    def convert(self, field_name: str, raw: Any) -> Any | None:
        """Apply the facet's conversion rule, ``None`` meaning "no match"."""
        definition = self.get(field_name)
        if definition.convert is None:
            return raw
        try:
            return definition.convert(raw)
        except (KeyError, ValueError, TypeError):
            return None

    # rendering -------------------------------------------------------
    def render(self, active: ActiveFilter) -> str:
        """Render a single active filter into its sub-expression."""
        definition = self.get(active.field)
        return _RENDERERS[definition.kind](definition, active.value)

    def build_query(self, active: Mapping[str, ActiveFilter]) -> str:
        """Conjoin all active filters into one query expression."""
        parts: list[str] = []
        for definition in self._definitions.values():
            current = active.get(definition.field)
            if current is None:
                continue
            rendered = _RENDERERS[definition.kind](definition, current.value)
            if rendered:
                parts.append(rendered)
        return " AND ".join(parts)

    # persistence -----------------------------------------------------
    def dump_value(self, field_name: str, value: FilterValue) -> Any:
        """Return a JSON-compatible representation of *value*."""
        definition = self.get(field_name)
        if definition.kind is FilterKind.LIST:
            entries: list[dict[str, Any]] = []
            for entry in value:  # type: ignore[union-attr]
                item: dict[str, Any] = {"text": entry.text}
                if entry.value is not None:
                    item["value"] = entry.value
                entries.append(item)
            return entries
        if definition.kind is FilterKind.DATE:
            if not isinstance(value, DateRange):
                raise TypeError(f"{field_name} filter must be a DateRange")
            return {
                "from": value.start.isoformat() if value.start else None,
                "to": value.end.isoformat() if value.end else None,
            }
        return str(value)

    def load_value(self, field_name: str, raw: Any) -> FilterValue:
        """Rebuild a filter value from :meth:`dump_value` output."""
        definition = self.get(field_name)
        if definition.kind is FilterKind.LIST:
            if not isinstance(raw, list):
                raise TypeError(f"{field_name} filter must be a list")
            entries: list[LabeledValue] = []
            seen: set[str] = set()
            for item in raw:
                if isinstance(item, Mapping):
                    text = str(item.get("text", ""))
                    stored = item.get("value")
                else:
                    text, stored = str(item), None
                if not text or text in seen:
                    continue
                seen.add(text)
                entries.append(LabeledValue(text=text, value=stored))
            return tuple(entries)
        if definition.kind is FilterKind.DATE:
            if not isinstance(raw, Mapping):
                raise TypeError(f"{field_name} filter must be a mapping")
            start = raw.get("from")
            end = raw.get("to")
            return DateRange(
                start=coerce_datetime(start) if start is not None else None,
                end=coerce_datetime(end) if end is not None else None,
            )
        return "" if raw is None else str(raw)


def _severity_code(label: str) -> int:
    return Severity.from_label(label).value


ALERT_FILTERS = FilterRegistry(
    [
        FilterDefinition("keyword", FilterKind.STRING, default_value="", free_text=True),
        FilterDefinition("status", FilterKind.LIST, label="Status", default_value=()),
        FilterDefinition("tags", FilterKind.LIST, label="Tags", default_value=()),
        FilterDefinition("source", FilterKind.LIST, label="Source", default_value=()),
        FilterDefinition("type", FilterKind.LIST, label="Type", default_value=()),
        FilterDefinition(
            "severity",
            FilterKind.LIST,
            label="Severity",
            default_value=(),
            convert=_severity_code,
        ),
        FilterDefinition("title", FilterKind.STRING, label="Title", default_value=""),
        FilterDefinition("sourceRef", FilterKind.STRING, label="Reference", default_value=""),
        FilterDefinition("date", FilterKind.DATE, label="Date", default_value=DateRange()),
    ],
    defaults={
        "status": (LabeledValue("New"), LabeledValue("Updated")),
    },
)
