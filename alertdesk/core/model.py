"""Domain models for alerts and cases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class AlertStatus(str, Enum):
    """Enumerate alert triage states."""

    NEW = "New"
    UPDATED = "Updated"
    IGNORED = "Ignored"
    IMPORTED = "Imported"


class Severity(IntEnum):
    """Numeric alert severity with its display label."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        """Return the display label for this severity."""
        return SEVERITY_LABELS[self.value]

    @classmethod
    def from_label(cls, label: str) -> Severity:
        """Return the severity whose display label is *label*.

        Raises :class:`KeyError` for unknown labels.
        """
        return cls(SEVERITY_KEYS[label])

    @classmethod
    def label_for(cls, value: int) -> str:
        """Return the display label for numeric *value*."""
        return SEVERITY_LABELS[cls(value).value]


SEVERITY_LABELS: dict[int, str] = {
    1: "Low",
    2: "Medium",
    3: "High",
    4: "Critical",
}
SEVERITY_KEYS: dict[str, int] = {label: value for value, label in SEVERITY_LABELS.items()}


@dataclass
class AlertSummary:
    """Alert row shown in the triage list.

    ``selected`` is view state toggled by the user; everything else mirrors
    the store's representation of the alert.
    """

    id: str
    title: str
    status: AlertStatus
    severity: int = Severity.MEDIUM.value
    follow: bool = False
    case: str | None = None
    tlp: int = 2
    source_ref: str = ""
    source: str = ""
    type: str = ""
    tags: list[str] = field(default_factory=list)
    date: int | None = None
    selected: bool = False


@dataclass(frozen=True)
class CaseSummary:
    """Case reference returned by case search, creation and merge calls."""

    id: str
    case_id: int | None = None
    title: str = ""


@dataclass(frozen=True)
class CaseTemplate:
    """Case template offered when escalating alerts into a new case."""

    id: str
    name: str
    title_prefix: str = ""
    description: str = ""


def alert_from_dict(data: dict[str, Any]) -> AlertSummary:
    """Create :class:`AlertSummary` from a store payload.

    Both ``id`` and ``_id`` are accepted as identifier keys. Unknown status
    values raise :class:`ValueError`.
    """
    raw_id = data.get("id", data.get("_id"))
    if raw_id in (None, ""):
        raise KeyError("missing required field: id")

    raw_status = data.get("status", AlertStatus.NEW.value)
    try:
        status = AlertStatus(raw_status)
    except ValueError as exc:
        raise ValueError(f"invalid status: {raw_status}") from exc

    try:
        severity = int(data.get("severity", Severity.MEDIUM.value))
    except (TypeError, ValueError) as exc:
        raise TypeError("severity must be an integer") from exc

    tags = data.get("tags") or []
    if not isinstance(tags, list):
        raise TypeError("tags must be a list")

    case = data.get("case")
    raw_date = data.get("date")

    return AlertSummary(
        id=str(raw_id),
        title=str(data.get("title") or ""),
        status=status,
        severity=severity,
        follow=bool(data.get("follow", False)),
        case=str(case) if case not in (None, "") else None,
        tlp=int(data.get("tlp", 2)),
        source_ref=str(data.get("sourceRef") or ""),
        source=str(data.get("source") or ""),
        type=str(data.get("type") or ""),
        tags=[str(tag) for tag in tags],
        date=int(raw_date) if raw_date is not None else None,
    )


def case_from_dict(data: dict[str, Any]) -> CaseSummary:
    """Create :class:`CaseSummary` from a store payload."""
    raw_id = data.get("id", data.get("_id"))
    if raw_id in (None, ""):
        raise KeyError("missing required field: id")
    number = data.get("caseId")
    return CaseSummary(
        id=str(raw_id),
        case_id=int(number) if number is not None else None,
        title=str(data.get("title") or ""),
    )


def template_from_dict(data: dict[str, Any]) -> CaseTemplate:
    """Create :class:`CaseTemplate` from a store payload."""
    raw_id = data.get("id", data.get("_id"))
    name = data.get("name")
    if raw_id in (None, "") or not name:
        raise KeyError("case template requires id and name")
    return CaseTemplate(
        id=str(raw_id),
        name=str(name),
        title_prefix=str(data.get("titlePrefix") or ""),
        description=str(data.get("description") or ""),
    )
