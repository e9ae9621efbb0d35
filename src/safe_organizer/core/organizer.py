"""Main orchestration logic for organizing a directory."""

import logging
import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..exceptions import FileOperationError, InvalidRootError, LogWriteError
from .categories import CategoryResolver, CategoryRuleSet, extension_of
from .move_logger import MoveLogger
from .mover import FileMover

logger = logging.getLogger(__name__)

DRY_RUN_SUMMARY = "Dry run complete. No files were moved."
ORGANIZE_SUMMARY = "File organization complete."


@dataclass(frozen=True)
class FileEntry:
    """A file directly inside the directory being organized."""
    path: Path
    name: str
    extension: str
    hidden: bool

    @classmethod
    def from_dir_entry(cls, entry: os.DirEntry) -> "FileEntry":
        return cls(
            path=Path(entry.path),
            name=entry.name,
            extension=extension_of(entry.name),
            hidden=_is_hidden(entry)
        )


@dataclass(frozen=True)
class OrganizeRequest:
    """Everything one run needs: a validated root, the mode and the rules."""
    root: Path
    dry_run: bool
    rule_set: CategoryRuleSet


class OutcomeAction(Enum):
    PLANNED = "planned"
    MOVED = "moved"
    FAILED = "failed"


@dataclass
class FileOutcome:
    """What happened to one file."""
    name: str
    category: str
    action: OutcomeAction
    source_path: Path
    target_path: Optional[Path] = None
    error: Optional[str] = None
    log_error: Optional[str] = None

    @property
    def message(self) -> str:
        if self.action is OutcomeAction.PLANNED:
            return f"[DRY RUN] Would move {self.name} → {self.category}/"
        if self.action is OutcomeAction.MOVED:
            return f"Moved {self.name} → {self.category}/"
        return f"Error processing file: {self.name} ({self.error})"


@dataclass
class OrganizeReport:
    """Result of organizing one directory."""
    root: Path
    dry_run: bool
    outcomes: List[FileOutcome] = field(default_factory=list)

    def _with_action(self, action: OutcomeAction) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.action is action]

    @property
    def planned(self) -> List[FileOutcome]:
        return self._with_action(OutcomeAction.PLANNED)

    @property
    def moved(self) -> List[FileOutcome]:
        return self._with_action(OutcomeAction.MOVED)

    @property
    def errors(self) -> List[FileOutcome]:
        return self._with_action(OutcomeAction.FAILED)

    @property
    def log_errors(self) -> List[str]:
        return [o.log_error for o in self.outcomes if o.log_error]

    @property
    def by_category(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for outcome in self.outcomes:
            if outcome.action is not OutcomeAction.FAILED:
                counts[outcome.category] = counts.get(outcome.category, 0) + 1
        return counts

    @property
    def summary(self) -> str:
        return DRY_RUN_SUMMARY if self.dry_run else ORGANIZE_SUMMARY


OutcomeCallback = Callable[[FileOutcome], None]


class FileOrganizer:
    """Sort the files of one directory into category folders."""

    def __init__(
        self,
        move_logger: Optional[MoveLogger] = None,
        file_mover: Optional[FileMover] = None
    ):
        self.move_logger = move_logger or MoveLogger()
        self.file_mover = file_mover or FileMover()

    def scan_directory(self, root: Path) -> List[os.DirEntry]:
        """Direct entries of ``root`` sorted by name. Never recurses."""
        try:
            with os.scandir(root) as it:
                entries = list(it)
        except OSError as e:
            raise InvalidRootError(f"Cannot list directory {root}: {e}")
        return sorted(entries, key=lambda entry: entry.name)

    def run(self, request: OrganizeRequest, on_outcome: Optional[OutcomeCallback] = None) -> OrganizeReport:
        """
        Organize the request's root directory.

        Failures are recorded per file and never stop the run.

        Args:
            request: Validated root, dry run flag and rule set
            on_outcome: Called with each outcome as soon as it is known

        Returns:
            Report with one outcome per planned, moved or failed file
        """
        report = OrganizeReport(root=request.root, dry_run=request.dry_run)
        log_path = _resolve_quietly(self.move_logger.log_file)

        logger.info(
            f"Organizing {request.root} ({'dry run' if request.dry_run else 'moving files'})"
        )

        for entry in self.scan_directory(request.root):
            outcome = self._process_entry(entry, request, log_path)
            if outcome is None:
                continue
            report.outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        logger.info(
            f"{report.summary} {len(report.moved)} moved, "
            f"{len(report.planned)} planned, {len(report.errors)} failed"
        )
        return report

    def _process_entry(
        self,
        entry: os.DirEntry,
        request: OrganizeRequest,
        log_path: Optional[Path]
    ) -> Optional[FileOutcome]:
        try:
            if not entry.is_file(follow_symlinks=False):
                logger.debug(f"Skipping non-file entry {entry.name}")
                return None
            file_entry = FileEntry.from_dir_entry(entry)
        except OSError as e:
            logger.warning(f"Error processing file: {entry.name}: {e}")
            return FileOutcome(
                name=entry.name,
                category="",
                action=OutcomeAction.FAILED,
                source_path=Path(entry.path),
                error=str(e)
            )

        if file_entry.hidden:
            logger.debug(f"Skipping hidden file {file_entry.name}")
            return None
        if CategoryResolver.is_blocked(file_entry.extension):
            logger.debug(f"Skipping blocked file {file_entry.name}")
            return None
        if log_path is not None and _resolve_quietly(file_entry.path) == log_path:
            logger.debug(f"Skipping move log {file_entry.name}")
            return None

        category = CategoryResolver.category_for(request.rule_set, file_entry.extension)

        if request.dry_run:
            return FileOutcome(
                name=file_entry.name,
                category=category,
                action=OutcomeAction.PLANNED,
                source_path=file_entry.path,
                target_path=request.root / category / file_entry.name
            )

        return self._move(file_entry, request.root, category)

    def _move(self, file_entry: FileEntry, root: Path, category: str) -> FileOutcome:
        try:
            target_path = self.file_mover.move_file(file_entry.path, root, category)
        except FileOperationError as e:
            logger.warning(f"Error processing file: {file_entry.name}: {e}")
            return FileOutcome(
                name=file_entry.name,
                category=category,
                action=OutcomeAction.FAILED,
                source_path=file_entry.path,
                error=str(e)
            )

        outcome = FileOutcome(
            name=file_entry.name,
            category=category,
            action=OutcomeAction.MOVED,
            source_path=file_entry.path,
            target_path=target_path
        )

        try:
            self.move_logger.record(file_entry.path, target_path)
        except LogWriteError as e:
            # The move stands; the audit line is best effort
            logger.warning(str(e))
            outcome.log_error = str(e)

        return outcome


def _is_hidden(entry: os.DirEntry) -> bool:
    if entry.name.startswith("."):
        return True
    attributes = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", 0)
    return bool(attributes & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))


def _resolve_quietly(path: Path) -> Optional[Path]:
    try:
        return path.resolve()
    except (OSError, RuntimeError):
        return None
