"""Stage a user's project into the build tree and restore it afterwards.

The stager owns the staging directory and its backup for the length of one
build. Its lifecycle is ``CLEAN -> STAGED -> (SUCCEEDED | FAILED) -> RESTORED``:

* :meth:`WorkspaceStager.stage` copies any pre-existing staging directory to
  the backup location, verifies the copy, removes the original, and fills a
  fresh staging directory with the project's files. Files that cannot be
  copied are logged and skipped.
* :meth:`WorkspaceStager.cleanup` runs exactly once, whatever happened in
  between. When a backup exists it replaces the staging directory with the
  backup, verifies the restore, and only then deletes the backup. A failed
  restore leaves the backup in place and logs the manual recovery command.

Two markers let the next run undo a killed build. Directories the stager
creates carry ``.dory-staging``; a verified backup is flagged by a sibling
``<backup>.complete`` file that is removed only after a verified restore.
Before staging, a flagged backup always replaces the staging directory. An
unflagged backup is discarded and its staging directory kept as is. A marked
staging directory with no backup is deleted.

No lock is taken: builds targeting the same staging root must be serialized
by the caller.

Example
-------
>>> from pathlib import Path
>>> stager = WorkspaceStager(Path("."), Path("docs"), Path(".docs.dory-backup"))  # doctest: +SKIP
>>> try:  # doctest: +SKIP
...     stager.stage().raise_for_failure()
...     ...
... finally:
...     stager.cleanup()
"""

from __future__ import annotations

import dataclasses as dc
import enum
import filecmp
import fnmatch
import logging
import os
import shlex
import shutil
import typing as typ
from pathlib import Path

from ._constants import (
    BACKUP_COMPLETE_SUFFIX,
    EXCLUDED_ANYWHERE,
    EXCLUDED_TOP_LEVEL,
    STAGING_MARKER,
)
from .results import StageResult

logger = logging.getLogger(__name__)


class StageState(enum.Enum):
    """Lifecycle states of a staging workspace."""

    CLEAN = "clean"
    STAGED = "staged"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RESTORED = "restored"


@dc.dataclass(slots=True)
class StagingWorkspace:
    """Ownership record for the staging directory of one build.

    Attributes
    ----------
    staging_dir : Path
        Directory the project is copied into.
    backup_dir : Path
        Location of the verified copy of a pre-existing staging directory.
    preexisted : bool
        Whether ``staging_dir`` existed before the build; when true a
        verified backup exists until cleanup confirms the restore.
    """

    staging_dir: Path
    backup_dir: Path
    preexisted: bool = False


class WorkspaceStager:
    """Copy a project into a staging directory with backup/restore guarantees."""

    def __init__(
        self,
        project_root: Path,
        staging_dir: Path,
        backup_dir: Path,
        *,
        excluded_top_level: typ.Sequence[str] = EXCLUDED_TOP_LEVEL,
        excluded_anywhere: typ.Sequence[str] = EXCLUDED_ANYWHERE,
    ) -> None:
        self.project_root = project_root.resolve()
        self.workspace = StagingWorkspace(
            staging_dir=staging_dir.resolve(), backup_dir=backup_dir.resolve()
        )
        self.excluded_top_level = tuple(excluded_top_level)
        self.excluded_anywhere = tuple(excluded_anywhere)
        self.state = StageState.CLEAN
        self._cleaned = False

    @property
    def staging_dir(self) -> Path:
        return self.workspace.staging_dir

    @property
    def backup_dir(self) -> Path:
        return self.workspace.backup_dir

    @property
    def backup_marker(self) -> Path:
        """Sibling file flagging the backup as verified and not yet restored."""
        backup = self.workspace.backup_dir
        return backup.with_name(backup.name + BACKUP_COMPLETE_SUFFIX)

    def stage(self) -> StageResult:
        """Back up, recreate, and populate the staging directory.

        Returns
        -------
        StageResult
            ``ok`` is false when a stale backup cannot be recovered, the
            backup cannot be created and verified, or the staging directory
            cannot be created. ``skipped`` lists project items that failed to
            copy; these do not fail the stage.
        """
        if self.state is not StageState.CLEAN:
            return StageResult.failure(
                "stage", "workspace has already been staged", path=self.staging_dir
            )

        recovered = self._recover_interrupted_build()
        if not recovered.ok:
            return recovered

        if self.staging_dir.exists():
            backed_up = self._back_up_staging_dir()
            if not backed_up.ok:
                return backed_up
        self.state = StageState.STAGED

        try:
            if self.workspace.preexisted:
                shutil.rmtree(self.staging_dir)
            self.staging_dir.mkdir(parents=True)
            (self.staging_dir / STAGING_MARKER).touch()
        except OSError as exc:
            return StageResult.failure(
                "stage",
                f"unable to create staging directory: {exc}",
                path=self.staging_dir,
            )

        skipped = self._copy_project()
        return StageResult(
            stage="stage",
            message=f"staged {self.project_root} into {self.staging_dir}",
            path=self.staging_dir,
            skipped=skipped,
        )

    def mark_succeeded(self) -> None:
        if self.state is StageState.STAGED:
            self.state = StageState.SUCCEEDED

    def mark_failed(self) -> None:
        if self.state is StageState.STAGED:
            self.state = StageState.FAILED

    def cleanup(self) -> StageResult:
        """Restore the pre-build staging directory, or remove the staged copy.

        Only the first call does any work; later calls report success without
        touching the filesystem.
        """
        if self._cleaned:
            return StageResult(stage="cleanup", message="already cleaned up")
        self._cleaned = True

        if self.state is StageState.CLEAN:
            return StageResult(stage="cleanup", message="nothing was staged")

        if self.workspace.preexisted:
            return self._restore_backup()

        try:
            if self.staging_dir.exists():
                shutil.rmtree(self.staging_dir)
        except OSError as exc:
            logger.error("Unable to remove staging directory %s: %s", self.staging_dir, exc)
            return StageResult.failure(
                "cleanup", f"unable to remove staging directory: {exc}", path=self.staging_dir
            )
        self.state = StageState.RESTORED
        return StageResult(stage="cleanup", message="removed staging directory")

    def recovery_command(self) -> str:
        """Return the shell command that manually restores the backup."""
        staging = shlex.quote(str(self.staging_dir))
        backup = shlex.quote(str(self.backup_dir))
        marker = shlex.quote(str(self.backup_marker))
        return f"rm -rf {staging} && mv {backup} {staging} && rm -f {marker}"

    def _recover_interrupted_build(self) -> StageResult:
        """Undo what a killed build left in the staging and backup locations."""
        staging = self.staging_dir
        backup = self.backup_dir
        if backup.exists() and self.backup_marker.exists():
            return self._recover_from_backup()

        try:
            if backup.exists():
                logger.warning(
                    "Discarding unverified backup %s; %s was not modified", backup, staging
                )
                shutil.rmtree(backup)
            self.backup_marker.unlink(missing_ok=True)
            if (staging / STAGING_MARKER).exists():
                logger.warning("Removing staged copy left by an interrupted build at %s", staging)
                shutil.rmtree(staging)
        except OSError as exc:
            return StageResult.failure(
                "recover", f"unable to clear interrupted build: {exc}", path=staging
            )
        return StageResult(stage="recover")

    def _recover_from_backup(self) -> StageResult:
        staging = self.staging_dir
        backup = self.backup_dir
        logger.warning("Recovering %s from backup left by an interrupted build", staging)
        try:
            if staging.exists():
                shutil.rmtree(staging)
            os.replace(backup, staging)
            self.backup_marker.unlink(missing_ok=True)
        except OSError as exc:
            logger.critical(
                "Could not recover %s from %s: %s. Your files are preserved in the "
                "backup; recover them with: %s",
                staging,
                backup,
                exc,
                self.recovery_command(),
            )
            return StageResult.failure(
                "recover", f"unable to recover interrupted build: {exc}", path=backup
            )
        return StageResult(stage="recover", message=f"recovered {staging}")

    def _back_up_staging_dir(self) -> StageResult:
        staging = self.staging_dir
        backup = self.backup_dir
        try:
            if backup.exists():
                shutil.rmtree(backup)
            backup.parent.mkdir(parents=True, exist_ok=True)
            shutil.copytree(staging, backup, symlinks=True)
        except (OSError, shutil.Error) as exc:
            shutil.rmtree(backup, ignore_errors=True)
            return StageResult.failure(
                "stage", f"unable to back up existing staging directory: {exc}", path=backup
            )
        if not trees_match(staging, backup):
            shutil.rmtree(backup, ignore_errors=True)
            return StageResult.failure(
                "stage", "backup does not match the existing staging directory", path=backup
            )
        try:
            self.backup_marker.touch()
        except OSError as exc:
            shutil.rmtree(backup, ignore_errors=True)
            return StageResult.failure(
                "stage", f"unable to flag backup as complete: {exc}", path=self.backup_marker
            )
        self.workspace.preexisted = True
        logger.info("Backed up %s to %s", staging, backup)
        return StageResult(stage="backup", path=backup)

    def _restore_backup(self) -> StageResult:
        staging = self.staging_dir
        backup = self.backup_dir
        if not backup.exists():
            logger.critical(
                "Backup %s is missing; %s cannot be restored", backup, staging
            )
            return StageResult.failure("cleanup", "backup directory is missing", path=backup)
        try:
            if staging.exists():
                shutil.rmtree(staging)
            shutil.copytree(backup, staging, symlinks=True)
        except (OSError, shutil.Error) as exc:
            logger.critical(
                "Restoring %s from backup failed: %s. The backup at %s was kept; "
                "recover manually with: %s",
                staging,
                exc,
                backup,
                self.recovery_command(),
            )
            return StageResult.failure("cleanup", f"restore failed: {exc}", path=backup)
        if not trees_match(backup, staging):
            logger.critical(
                "Restored %s does not match backup %s. The backup was kept; "
                "recover manually with: %s",
                staging,
                backup,
                self.recovery_command(),
            )
            return StageResult.failure(
                "cleanup", "restored directory does not match backup", path=backup
            )
        try:
            self.backup_marker.unlink(missing_ok=True)
            shutil.rmtree(backup)
        except OSError as exc:
            logger.warning("Restored %s but could not remove backup %s: %s", staging, backup, exc)
        self.state = StageState.RESTORED
        return StageResult(stage="cleanup", message=f"restored {staging}")

    def _is_excluded(self, item: Path) -> bool:
        if _matches(item.name, self.excluded_top_level + self.excluded_anywhere):
            return True
        resolved = item.resolve()
        if resolved == self.backup_marker:
            return True
        return self.staging_dir.is_relative_to(resolved) or self.backup_dir.is_relative_to(
            resolved
        )

    def _copy_project(self) -> list[str]:
        skipped: list[str] = []
        ignore = shutil.ignore_patterns(*self.excluded_anywhere)
        for item in sorted(self.project_root.iterdir()):
            if self._is_excluded(item):
                continue
            target = self.staging_dir / item.name
            try:
                if item.is_dir() and not item.is_symlink():
                    shutil.copytree(
                        item, target, symlinks=True, ignore=ignore, dirs_exist_ok=True
                    )
                else:
                    shutil.copy2(item, target, follow_symlinks=False)
            except shutil.Error as exc:
                for source, _destination, reason in exc.args[0]:
                    logger.warning("Skipped %s while staging: %s", source, reason)
                    skipped.append(str(source))
            except OSError as exc:
                logger.warning("Skipped %s while staging: %s", item, exc)
                skipped.append(str(item))
        return skipped


def _matches(name: str, patterns: typ.Iterable[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def trees_match(left: Path, right: Path) -> bool:
    """Return whether two directory trees hold the same entries and bytes."""
    pending = [Path()]
    while pending:
        relative = pending.pop()
        try:
            left_entries = {entry.name: entry for entry in os.scandir(left / relative)}
            right_entries = {entry.name: entry for entry in os.scandir(right / relative)}
        except OSError:
            return False
        if left_entries.keys() != right_entries.keys():
            return False
        for name, entry in left_entries.items():
            other = right_entries[name]
            if entry.is_symlink() or other.is_symlink():
                if not (entry.is_symlink() and other.is_symlink()):
                    return False
                if os.readlink(entry.path) != os.readlink(other.path):
                    return False
            elif entry.is_dir():
                if not other.is_dir():
                    return False
                pending.append(relative / name)
            elif other.is_dir() or not filecmp.cmp(entry.path, other.path, shallow=False):
                return False
    return True


__all__ = ["StageState", "StagingWorkspace", "WorkspaceStager", "trees_match"]
