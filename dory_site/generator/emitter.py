"""Write generated artefacts into the output directory.

The emitter is the only component that writes into the output directory.
Writes create parent directories as needed and overwrite existing files, so
re-running a build with unchanged input reproduces the same bytes.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import msgspec

from dory_site._constants import INDEX_HTML

if typ.TYPE_CHECKING:
    from dory_site.content.models import RenderedRoute


class StaticEmitter:
    """Persist encoded artefacts and per-route HTML under ``output_dir``."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir.resolve()
        self.written: list[Path] = []

    def path_for(self, relative: str | Path) -> Path:
        """Return the absolute target for ``relative`` inside the output dir.

        Raises
        ------
        ValueError
            If ``relative`` resolves outside the output directory.
        """
        target = (self.output_dir / relative).resolve()
        if not target.is_relative_to(self.output_dir):
            msg = f"Refusing to write outside {self.output_dir}: {relative}"
            raise ValueError(msg)
        return target

    def write_bytes(self, relative: str | Path, payload: bytes) -> Path:
        target = self.path_for(relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
        self.written.append(target)
        return target

    def write_text(self, relative: str | Path, text: str) -> Path:
        return self.write_bytes(relative, text.encode("utf-8"))

    def write_route(self, rendered: RenderedRoute) -> Path:
        """Write ``rendered`` to ``<route>/index.html`` (``index.html`` for ``/``)."""
        return self.write_text(route_file(rendered.route_path), rendered.html)


def encode_json(value: object, *, indent: int | None = None) -> bytes:
    """Encode ``value`` with msgspec, preserving mapping key order.

    ``indent`` pretty-prints the payload; ``None`` keeps it compact.
    """
    payload = msgspec.json.encode(value)
    if indent is not None:
        payload = msgspec.json.format(payload, indent=indent)
    return payload


def route_file(route_path: str) -> str:
    """Return the output-relative HTML path for ``route_path``."""
    stripped = route_path.strip("/")
    if not stripped:
        return INDEX_HTML
    return f"{stripped}/{INDEX_HTML}"


__all__ = ["StaticEmitter", "encode_json", "route_file"]
