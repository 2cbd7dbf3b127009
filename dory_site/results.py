"""Result records passed between build stages."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path


class BuildError(RuntimeError):
    """Raised by the orchestrator when a fatal precondition or stage fails."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        base = super().__str__()
        if self.path is None:
            return base
        return f"{base} (expected at {self.path})"


@dc.dataclass(slots=True)
class StageResult:
    """Outcome of a single pipeline stage.

    Attributes
    ----------
    stage : str
        Short stage name used in log lines and error messages.
    ok : bool
        Whether the stage completed without a fatal condition.
    message : str
        Human-readable summary, or the failure reason when ``ok`` is false.
    path : Path or None
        Path the stage was operating on or expected to find.
    skipped : list[str]
        Items the stage skipped as recoverable failures.
    """

    stage: str
    ok: bool = True
    message: str = ""
    path: Path | None = None
    skipped: list[str] = dc.field(default_factory=list)

    @classmethod
    def failure(cls, stage: str, message: str, *, path: Path | None = None) -> StageResult:
        return cls(stage=stage, ok=False, message=message, path=path)

    def raise_for_failure(self) -> None:
        """Raise :class:`BuildError` when the stage did not succeed."""
        if not self.ok:
            raise BuildError(f"{self.stage}: {self.message}", path=self.path)


@dc.dataclass(slots=True)
class BuildReport:
    """Summary of a finished build, returned by the orchestrator."""

    output_dir: Path
    pages: int = 0
    prerendered: int = 0
    ssr_rendered: int = 0
    ssr_failed: int = 0
    written: list[Path] = dc.field(default_factory=list)
    warnings: list[str] = dc.field(default_factory=list)


__all__ = ["BuildError", "BuildReport", "StageResult"]
