"""Load ``dory.json`` and resolve build settings into typed dataclasses."""

from __future__ import annotations

import os
import shlex
import typing as typ
from pathlib import Path

import msgspec
import tomlkit

from dory_site._constants import (
    DEFAULT_BACKUP_DIR,
    DEFAULT_COMPILE_COMMAND,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SSR_BUNDLE,
    DEFAULT_STAGING_DIR,
    SETTINGS_FILENAME,
)

from .models import BuildSettings, SiteConfig, SiteConfigError
from .navigation import flatten_navigation

_ENV_PREFIX = "DORY_"


def load_site_config(path: Path) -> SiteConfig:
    """Decode ``dory.json`` at ``path`` into a :class:`SiteConfig`.

    Parameters
    ----------
    path : Path
        Location of the site configuration file.

    Returns
    -------
    SiteConfig
        Site name, URL, default metadata, and the flattened navigation order.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    SiteConfigError
        If the file is not valid JSON or its top level is not an object.
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)
    try:
        loaded = msgspec.json.decode(path.read_bytes())
    except msgspec.DecodeError as exc:
        msg = f"Invalid JSON in '{path}': {exc}"
        raise SiteConfigError(msg, path=path) from exc
    if not isinstance(loaded, dict):
        msg = f"Top-level JSON value in '{path}' must be an object."
        raise SiteConfigError(msg, path=path)
    raw: dict[str, typ.Any] = dict(loaded)
    base = SiteConfig()
    url = _optional_str(raw.get("url")) or ""
    return SiteConfig(
        name=_optional_str(raw.get("name")) or base.name,
        url=url.rstrip("/"),
        title=_optional_str(raw.get("title")) or "",
        description=_optional_str(raw.get("description")) or "",
        image=_optional_str(raw.get("image")) or base.image,
        navigation_order=flatten_navigation(raw),
        raw=raw,
    )


def load_build_settings(
    project_root: Path,
    *,
    build_root: Path | None = None,
    staging_dir: Path | None = None,
    backup_dir: Path | None = None,
    output_dir: Path | None = None,
    compile_command: str | None = None,
    ssr_bundle: Path | None = None,
    workers: int | None = None,
) -> BuildSettings:
    """Merge CLI overrides, ``DORY_*`` environment, and ``dory.toml``.

    Each value resolves from the first source that provides it: the keyword
    argument, the ``DORY_<NAME>`` environment variable, the ``[build]`` table
    of ``dory.toml`` in ``project_root``, then the built-in default. Relative
    ``build_root`` values resolve against ``project_root``; relative staging,
    backup, output and bundle paths resolve against the build root.
    """
    project_root = project_root.resolve()
    stored = _read_settings_file(project_root / SETTINGS_FILENAME)

    def _pick(name: str, override: object | None) -> typ.Any:
        if override is not None:
            return override
        env_value = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
        if env_value:
            return env_value
        return stored.get(name)

    root = _resolve_under(project_root, _pick("build_root", build_root) or ".")
    command = _pick("compile_command", compile_command)
    if command is None:
        command = DEFAULT_COMPILE_COMMAND
    worker_count = _coerce_workers(_pick("workers", workers))

    return BuildSettings(
        project_root=project_root,
        build_root=root,
        staging_dir=_resolve_under(
            root, _pick("staging_dir", staging_dir) or DEFAULT_STAGING_DIR
        ),
        backup_dir=_resolve_under(
            root, _pick("backup_dir", backup_dir) or DEFAULT_BACKUP_DIR
        ),
        output_dir=_resolve_under(
            root, _pick("output_dir", output_dir) or DEFAULT_OUTPUT_DIR
        ),
        compile_command=_split_command(command),
        ssr_bundle=_resolve_under(
            root, _pick("ssr_bundle", ssr_bundle) or DEFAULT_SSR_BUNDLE
        ),
        workers=worker_count,
    )


def _read_settings_file(path: Path) -> dict[str, typ.Any]:
    """Return the ``[build]`` table of ``path`` as a plain dict, if present."""
    try:
        document = tomlkit.parse(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except tomlkit.exceptions.ParseError as exc:
        msg = f"Unable to parse settings TOML at {path}"
        raise SiteConfigError(msg, path=path) from exc
    table = document.get("build")
    if not isinstance(table, tomlkit.items.Table):
        return {}
    return dict(table.unwrap())


def _resolve_under(base: Path, value: str | Path) -> Path:
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = base / candidate
    return candidate.resolve()


def _split_command(command: str | list[str]) -> list[str]:
    if isinstance(command, list):
        return [str(part) for part in command]
    return shlex.split(command)


def _coerce_workers(value: object | None) -> int:
    default = min(32, (os.cpu_count() or 1) + 4)
    if value is None or value == "":
        return default
    try:
        count = int(typ.cast(typ.Any, value))
    except (TypeError, ValueError) as exc:
        msg = f"workers must be an integer, got {value!r}"
        raise SiteConfigError(msg) from exc
    return max(1, count)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["load_build_settings", "load_site_config"]
