"""JSON serialisation helpers."""

from __future__ import annotations

import datetime
from collections.abc import Callable, Mapping
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any


def make_json_safe(
    value: Any,
    *,
    sort_sets: bool = True,
    default: Callable[[Any], Any] | None = None,
) -> Any:
    """Return a structure compatible with :func:`json.dumps`.

    Dataclasses become mappings, enums collapse to their values and
    datetimes are rendered in ISO format. Anything else unknown is passed
    through *default* (``repr`` by default).
    """

    if default is None:
        default = repr

    def _convert(item: Any) -> Any:
        if isinstance(item, Mapping):
            return {
                key if isinstance(key, str) else str(key): _convert(val)
                for key, val in item.items()
            }
        if isinstance(item, (list, tuple)):
            return [_convert(val) for val in item]
        if isinstance(item, (set, frozenset)):
            converted = [_convert(val) for val in item]
            if sort_sets:
                converted.sort(key=repr)
            return converted
        if isinstance(item, Enum):
            return _convert(item.value)
        if isinstance(item, (datetime.datetime, datetime.date)):
            return item.isoformat()
        if is_dataclass(item) and not isinstance(item, type):
            return _convert(asdict(item))
        if isinstance(item, (str, int, float, bool)) or item is None:
            return item
        try:
            converted = default(item)
        except Exception:
            return f"<unserialisable {type(item).__name__}>"
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
        return _convert(converted)

    return _convert(value)


__all__ = ["make_json_safe"]
