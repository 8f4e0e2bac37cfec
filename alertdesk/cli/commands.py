"""Command implementations for the CLI interface."""

from __future__ import annotations

import argparse
import asyncio
import datetime
import json
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable

from alertdesk.config import MemoryContextStore
from alertdesk.core.filters import ALERT_FILTERS
from alertdesk.core.model import SEVERITY_LABELS, AlertSummary
from alertdesk.i18n import _
from alertdesk.services.alert_store import HttpAlertStore, RemoteRequestError
from alertdesk.settings import normalise_sort
from alertdesk.ui.alert_list_model import AlertListModel
from alertdesk.ui.filter_model import FilterModel
from alertdesk.util.json import make_json_safe


@dataclass
class Command:
    """Describe a CLI command and its argument handler."""

    func: Callable[[argparse.Namespace], int | None]
    help: str
    add_arguments: Callable[[argparse.ArgumentParser], None]


def parse_filter(text: str) -> tuple[str, str]:
    """Split ``field=value`` into its parts."""
    field, sep, value = text.partition("=")
    if not sep or not field.strip():
        raise argparse.ArgumentTypeError(
            _("filter must look like field=value: {text}").format(text=text)
        )
    return field.strip(), value.strip()


async def build_filters(
    pairs: Sequence[tuple[str, str]],
    *,
    defaults: bool = True,
    tz: datetime.tzinfo | None = None,
) -> FilterModel:
    """Return a filter model holding *pairs* on top of the default filters."""
    model = FilterModel(ALERT_FILTERS, MemoryContextStore(), tz=tz)
    await model.init_context()
    if not defaults:
        await model.set_filters({})
    for field, value in pairs:
        await model.add_filter_value(field, value)
    return model


def _add_filter_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--filter",
        dest="filters",
        action="append",
        default=[],
        type=parse_filter,
        metavar="FIELD=VALUE",
        help=_("add a filter value, may be repeated"),
    )
    p.add_argument(
        "--no-defaults",
        action="store_true",
        help=_("start without the default status filter"),
    )


def _report_unknown_field(exc: KeyError) -> int:
    sys.stderr.write(_("error: {message}\n").format(message=exc.args[0] if exc.args else exc))
    return 2


def cmd_query(args: argparse.Namespace) -> int:
    """Print the query expression for the given filters."""
    try:
        model = asyncio.run(build_filters(args.filters, defaults=not args.no_defaults))
    except KeyError as exc:
        return _report_unknown_field(exc)
    sys.stdout.write(model.build_query() + "\n")
    return 0


def add_query_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``query`` command."""
    _add_filter_arguments(p)


async def _fetch_page(args: argparse.Namespace) -> AlertListModel:
    filters = await build_filters(args.filters, defaults=not args.no_defaults)
    settings = args.app_settings
    model = AlertListModel(
        HttpAlertStore(settings.store),
        filter=filters.build_query(),
        sort=normalise_sort(args.sort) if args.sort else settings.alerts.sort,
        page_size=args.page_size or settings.alerts.page_size,
    )
    await model.go_to_page(args.page)
    return model


def _format_alert(alert: AlertSummary) -> str:
    severity = SEVERITY_LABELS.get(alert.severity, str(alert.severity))
    return f"{alert.id}\t{alert.status.value}\t{severity}\t{alert.title}"


def cmd_list(args: argparse.Namespace) -> int:
    """Fetch one page of alerts from the store."""
    try:
        model = asyncio.run(_fetch_page(args))
    except KeyError as exc:
        return _report_unknown_field(exc)
    except RemoteRequestError as exc:
        sys.stderr.write(_("error: {message}\n").format(message=exc))
        return 1
    if args.json:
        payload = {
            "query": model.filter,
            "total": model.total,
            "values": make_json_safe(model.values),
        }
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
        return 0
    for alert in model.values:
        sys.stdout.write(_format_alert(alert) + "\n")
    sys.stdout.write(
        _("{shown} of {total} alerts\n").format(shown=len(model.values), total=model.total)
    )
    return 0


def add_list_arguments(p: argparse.ArgumentParser) -> None:
    """Configure parser for the ``list`` command."""
    _add_filter_arguments(p)
    p.add_argument("--sort", action="append", help=_("sort key such as -date"))
    p.add_argument("--page-size", type=int, help=_("number of alerts per page"))
    p.add_argument("--page", type=int, default=1, help=_("page number starting at 1"))
    p.add_argument("--json", action="store_true", help=_("print JSON instead of a table"))


COMMANDS: dict[str, Command] = {
    "query": Command(cmd_query, _("print the search query for filters"), add_query_arguments),
    "list": Command(cmd_list, _("list alerts from the store"), add_list_arguments),
}
