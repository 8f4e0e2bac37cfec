"""Entry point for the command-line interface."""

from __future__ import annotations

import argparse

from alertdesk import i18n
from alertdesk.i18n import _
from alertdesk.log import configure_logging
from alertdesk.settings import AppSettings, load_app_settings

from .commands import COMMANDS

i18n.install()


def build_parser() -> argparse.ArgumentParser:
    """Construct argument parser for CLI commands."""
    parser = argparse.ArgumentParser(prog="alertdesk", description=_("AlertDesk CLI"))
    parser.add_argument(
        "--settings",
        help=_("path to JSON/TOML settings"),
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for name, cmd in COMMANDS.items():
        p = sub.add_parser(name, help=cmd.help)
        cmd.add_arguments(p)
        p.set_defaults(func=cmd.func)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = AppSettings()
    if args.settings:
        settings = load_app_settings(args.settings)
    configure_logging(settings.ui.log_level)
    preferred_language = settings.ui.language
    if preferred_language:
        i18n.install(languages=[preferred_language])
    args.app_settings = settings
    return args.func(args) or 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
