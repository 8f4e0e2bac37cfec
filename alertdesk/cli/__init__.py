"""Command-line interface package for AlertDesk.

The function :func:`main` is re-exported here
(``from alertdesk.cli import main``). The implementation lives in
:mod:`alertdesk.cli.main`.
"""

from .main import main

__all__ = ["main"]
