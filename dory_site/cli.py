"""Cyclopts CLI entrypoint for building dory documentation sites.

The ``dory`` console script stages the project in the current directory,
extracts page metadata and search content, runs the configured compile
command, and completes the output with per-route HTML. ``dory index`` writes
only the metadata, search, and crawler artefacts for a content directory,
which is handy while editing content.

Every option can also be supplied through a ``DORY_<OPTION>`` environment
variable.

Examples
--------
Build the site in the current directory:

>>> from dory_site.cli import main
>>> main()  # doctest: +SKIP

Rebuild the search index for a checkout without compiling:

>>> from dory_site.cli import app
>>> app(["index", "--content-dir", "docs", "--output-dir", "public"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import CONFIG_FILENAME
from .config import SiteConfigError, load_build_settings, load_site_config
from .orchestrator import BuildOrchestrator, build_index
from .results import BuildError

app = App(name="dory", config=cyclopts.config.Env("DORY_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(exc: Exception) -> typ.NoReturn:
    print(f"error: {exc}", file=sys.stderr)
    sys.exit(1)


def _filesystem_error(exc: OSError) -> BuildError:
    """Describe a fatal filesystem error with the path it concerns."""
    path = Path(exc.filename) if isinstance(exc.filename, str) else None
    return BuildError(exc.strerror or str(exc), path=path)


@app.command(help="Stage the project, compile it, and write the finished site.")
def build(
    *,
    project_dir: typ.Annotated[
        Path, Parameter(help="Directory holding dory.json", env_var="DORY_PROJECT_DIR")
    ] = Path(),
    build_root: typ.Annotated[
        Path | None,
        Parameter(help="Directory the compile command runs in", env_var="DORY_BUILD_ROOT"),
    ] = None,
    compile_command: typ.Annotated[
        str | None,
        Parameter(help="Override the compile command", env_var="DORY_COMPILE_COMMAND"),
    ] = None,
    workers: typ.Annotated[
        int | None, Parameter(help="Thread pool size", env_var="DORY_WORKERS")
    ] = None,
    skip_compile: typ.Annotated[
        bool, Parameter(help="Reuse existing compile output")
    ] = False,
    verbose: bool = False,
) -> None:
    """Run the full build for ``project_dir``.

    Parameters
    ----------
    project_dir : Path, optional
        Project root containing ``dory.json``; defaults to the current
        directory.
    build_root : Path or None, optional
        Directory holding the staging and output directories; defaults to
        the project root.
    compile_command : str or None, optional
        Shell-style command line for the compile step; defaults to
        ``npm run build``.
    workers : int or None, optional
        Upper bound for the discovery and rendering thread pools.
    skip_compile : bool, optional
        Skip the external compile step and complete existing output.
    verbose : bool, optional
        Log debug messages.

    Returns
    -------
    None
        Exits with status 1 on a fatal build error.
    """
    _configure_logging(verbose)
    try:
        settings = load_build_settings(
            project_dir,
            build_root=build_root,
            compile_command=compile_command,
            workers=workers,
        )
        report = BuildOrchestrator(settings, skip_compile=skip_compile).run()
    except (BuildError, SiteConfigError) as exc:
        _fail(exc)
    except OSError as exc:
        _fail(_filesystem_error(exc))

    for path in report.written:
        print(f"wrote {_format_path(path)}")
    print(
        f"built {report.pages} pages, prerendered {report.prerendered} routes, "
        f"server-rendered {report.ssr_rendered} ({report.ssr_failed} failed)"
    )


@app.command(help="Write metadata, search, and crawler files for a content directory.")
def index(
    *,
    content_dir: typ.Annotated[
        Path, Parameter(help="Content root to crawl", env_var="DORY_CONTENT_DIR")
    ] = Path(),
    config: typ.Annotated[
        Path, Parameter(help="Path to dory.json", env_var="DORY_CONFIG")
    ] = Path(CONFIG_FILENAME),
    output_dir: typ.Annotated[
        Path, Parameter(help="Where to write the files", env_var="DORY_OUTPUT_DIR")
    ] = Path("public"),
    workers: typ.Annotated[
        int, Parameter(help="Thread pool size", env_var="DORY_WORKERS")
    ] = 4,
) -> None:
    """Write the core artefacts without staging or compiling."""
    _configure_logging(verbose=False)
    if not config.is_file():
        _fail(BuildError(f"{CONFIG_FILENAME} not found", path=config))
    if not content_dir.is_dir():
        _fail(BuildError("content directory not found", path=content_dir))
    try:
        site = load_site_config(config)
        written = build_index(content_dir, output_dir, site, workers=workers)
    except SiteConfigError as exc:
        _fail(exc)
    except OSError as exc:
        _fail(_filesystem_error(exc))

    for path in written:
        print(f"wrote {_format_path(path)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``dory`` console command."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
