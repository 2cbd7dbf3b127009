"""Typed dataclasses describing dory site configuration and build settings."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path


class SiteConfigError(ValueError):
    """Raised when ``dory.json`` is invalid or cannot be decoded."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


@dc.dataclass(slots=True)
class SiteConfig:
    """Site-level values read from ``dory.json``.

    Attributes
    ----------
    name : str
        Site name; used as the fallback page title.
    url : str
        Public base URL without a trailing slash; may be empty.
    title : str
        Default document title for the root page.
    description : str
        Default meta description for the root page.
    image : str
        Social preview image URL.
    navigation_order : list[str]
        Flattened navigation page keys in manifest order.
    raw : dict[str, Any]
        The decoded JSON document, retained for keys this package ignores.
    """

    name: str = "Documentation"
    url: str = ""
    title: str = ""
    description: str = ""
    image: str = "./docs/favicon.svg"
    navigation_order: list[str] = dc.field(default_factory=list)
    raw: dict[str, typ.Any] = dc.field(default_factory=dict)

    @property
    def default_title(self) -> str:
        return self.title or self.name

    @property
    def default_description(self) -> str:
        return self.description or f"{self.name} - Technical Documentation"


@dc.dataclass(slots=True)
class BuildSettings:
    """Resolved filesystem layout and tooling choices for one build.

    Attributes
    ----------
    project_root : Path
        Directory the build was invoked from; holds ``dory.json``.
    build_root : Path
        Directory the compile command runs in; staging and output live here.
    staging_dir : Path
        Working copy the user's project is staged into.
    backup_dir : Path
        Where a pre-existing staging directory is preserved during the build.
    output_dir : Path
        Directory the compile command writes and the emitter completes.
    compile_command : list[str]
        Argument vector for the external full-compile step; empty to skip.
    ssr_bundle : Path
        Python module exposing ``render``; the SSR stage is skipped if absent.
    workers : int
        Upper bound for the discovery and rendering thread pools.
    """

    project_root: Path
    build_root: Path
    staging_dir: Path
    backup_dir: Path
    output_dir: Path
    compile_command: list[str]
    ssr_bundle: Path
    workers: int

    @property
    def delivery_dir(self) -> Path:
        """Return where the finished site is placed inside the project."""
        return self.project_root / "dist"


__all__ = ["BuildSettings", "SiteConfig", "SiteConfigError"]
