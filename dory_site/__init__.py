"""Build static documentation sites from ``.mdx`` content.

This package exposes the CLI entry points behind the ``dory`` console script,
which stages a project, extracts page metadata and search content, and
completes compiled output with per-route HTML.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from dory_site import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
