"""Drive the organize pipeline over a target directory."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, get_args

from tidyup.classification import ClassificationEngine, CustomRuleSet, FeatureExtractor
from tidyup.classification.features import match_name_pattern
from tidyup.classification.models import ClassificationResult
from tidyup.config.models import OrganizeMode, TidyupConfig
from tidyup.inspection import (
    ContentInspector,
    ContentSniffer,
    DirectoryScanner,
    analyze_directory,
)
from tidyup.inspection.inspector import KIB
from tidyup.inspection.models import ContentFacts
from tidyup.state import (
    ConfidenceModel,
    ConfidenceModelStore,
    JournalRepository,
    JournalWriter,
)
from tidyup.state.learning import PatternLearner

from .errors import InputError, MoveError
from .executor import MoveExecutor
from .models import FileOutcome, OrganizationSummary
from .placement import PLACEMENTS, create_project_skeleton
from .planner import PathPlanner

LOGGER = logging.getLogger(__name__)

MODES: tuple[str, ...] = get_args(OrganizeMode)
VCS_DIRNAMES = (".git", ".hg", ".svn")


class OrchestratorState(str, Enum):
    """Lifecycle of one organize invocation."""

    IDLE = "idle"
    SCANNING = "scanning"
    CLASSIFYING = "classifying"
    APPLYING = "applying"
    PREVIEWING = "previewing"
    LOGGED = "logged"


def resolve_target(path: Path) -> Path:
    """Return the resolved target directory.

    Raises:
        InputError: If path is missing or not a directory.
    """
    expanded = path.expanduser()
    if not expanded.exists():
        raise InputError(f"Directory does not exist: {path}")
    if not expanded.is_dir():
        raise InputError(f"Not a directory: {path}")
    return expanded.resolve()


class OrganizationOrchestrator:
    """Walk a directory, classify each file, and move or preview it.

    Moves and journal appends happen one file at a time in the calling
    thread, so collision checks always observe earlier moves of the run.

    Args:
        config: Resolved configuration.
        model: Confidence model; loaded from ``model_store`` when omitted.
        model_store: Store used to load and persist the confidence model.
        custom_rules: Extra rules consulted before the built-in table.
        journal: Journal repository for executed moves.
        now: Clock for age buckets and time-of-day suffixes.
    """

    def __init__(
        self,
        config: Optional[TidyupConfig] = None,
        *,
        model: Optional[ConfidenceModel] = None,
        model_store: Optional[ConfidenceModelStore] = None,
        custom_rules: Optional[CustomRuleSet] = None,
        journal: Optional[JournalRepository] = None,
        now: Optional[datetime] = None,
    ) -> None:
        self.config = config or TidyupConfig()
        self.model_store = model_store
        self._model = model
        rules = CustomRuleSet(self.config.rules)
        if custom_rules is not None:
            rules.extend(custom_rules.rules)
        self.custom_rules = rules
        self.journal = journal or JournalRepository(self.config.organization.state_dirname)
        self.now = now
        self._state = OrchestratorState.IDLE
        self._stop_requested = False

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def model(self) -> ConfidenceModel:
        """Return the confidence model, loading it on first use."""
        return self._load_model(create=True)

    def _load_model(self, *, create: bool) -> ConfidenceModel:
        if self._model is None:
            if self.model_store is None:
                self._model = ConfidenceModel()
            else:
                self._model = self.model_store.load(create=create)
        return self._model

    def request_stop(self) -> None:
        """Ask the running pass to stop before the next file's move."""
        self._stop_requested = True

    def organize(
        self,
        target: Path,
        *,
        mode: str = "auto",
        recursive: Optional[bool] = None,
        dry_run: bool = False,
        learn: bool = False,
    ) -> OrganizationSummary:
        """Organize target and return a summary of the pass.

        Args:
            target: Directory to organize.
            mode: One of auto, type, date, size, or project.
            recursive: Walk subdirectories; defaults to the configured value.
            dry_run: Plan moves without touching the filesystem or journal.
            learn: Record extension patterns of existing subdirectories first.

        Returns:
            OrganizationSummary: Outcomes, planned moves, and errors.

        Raises:
            InputError: If the target or mode is invalid.
        """
        if mode not in MODES:
            raise InputError(f"Invalid mode '{mode}'. Choose from: {', '.join(MODES)}.")
        root = resolve_target(target)
        processing = self.config.processing
        if recursive is None:
            recursive = processing.recurse_directories

        started = time.monotonic()
        now = self.now or datetime.now(timezone.utc)
        self._stop_requested = False
        summary = OrganizationSummary(root=root, mode=mode, dry_run=dry_run)
        state_dirname = self.journal.base_dirname
        model = self._load_model(create=not dry_run)

        if learn:
            PatternLearner(excluded_dirnames=[state_dirname]).update(model, root)

        self._state = OrchestratorState.SCANNING
        scanner = DirectoryScanner(
            recursive=recursive,
            include_hidden=processing.process_hidden_files,
            follow_symlinks=processing.follow_symlinks,
            excluded_dirnames=[state_dirname, *VCS_DIRNAMES],
        )
        # Materialize the walk so files moved during the run are never revisited.
        pending = list(scanner.scan(root))
        LOGGER.info("Found %d file(s) under %s", len(pending), root)

        inspector = ContentInspector(
            ContentSniffer(inspect_images=processing.inspect_images),
            sample_bytes=processing.sample_size_kb * KIB,
            now=now,
        )
        extractor = FeatureExtractor(now=now)
        engine = ClassificationEngine(
            model,
            custom_rules=self.custom_rules,
            analysis=analyze_directory(root) if mode == "auto" else None,
            ensemble_scale=self.config.classification.ensemble_scale,
        )
        planner = PathPlanner(root, now=now.astimezone())
        writer: Optional[JournalWriter] = None
        if not dry_run:
            writer = self.journal.writer(root, mode=mode)
            if mode == "project":
                create_project_skeleton(root)
        executor = MoveExecutor(writer)

        try:
            for index, item in enumerate(pending):
                if self._stop_requested:
                    summary.interrupted = True
                    LOGGER.info("Stop requested; %d file(s) left unvisited", len(pending) - index)
                    break
                self._state = OrchestratorState.CLASSIFYING
                facts = inspector.inspect(item.path)
                if mode == "auto":
                    features = extractor.extract(facts)
                    result = engine.classify(features)
                    age_class, name_pattern = features.age_class, features.name_pattern
                else:
                    result = self._place(mode, facts)
                    age_class, name_pattern = facts.age_class, match_name_pattern(facts.path.name)

                resolution, operation = planner.plan(
                    item.path, result, age_class=age_class, name_pattern=name_pattern
                )
                if operation is None:
                    summary.outcomes.append(
                        FileOutcome(
                            path=item.path,
                            result=result,
                            action=resolution.action,
                            destination=resolution.destination,
                        )
                    )
                    continue

                summary.moves.append(operation)
                if dry_run:
                    self._state = OrchestratorState.PREVIEWING
                    summary.outcomes.append(
                        FileOutcome(
                            path=item.path,
                            result=result,
                            action="move",
                            destination=operation.destination,
                        )
                    )
                    continue

                self._state = OrchestratorState.APPLYING
                try:
                    executor.apply(operation)
                except MoveError as exc:
                    LOGGER.error("%s", exc)
                    planner.release(operation)
                    summary.errors.append(str(exc))
                    summary.outcomes.append(
                        FileOutcome(
                            path=item.path,
                            result=result,
                            action="error",
                            destination=operation.destination,
                            error=str(exc),
                        )
                    )
                    continue
                summary.applied += 1
                summary.outcomes.append(
                    FileOutcome(
                        path=item.path,
                        result=result,
                        action="move",
                        destination=operation.destination,
                    )
                )
        except KeyboardInterrupt:
            LOGGER.warning("Interrupted; stopping before the next move")
            summary.interrupted = True
        finally:
            summary.duration_seconds = round(time.monotonic() - started, 3)
            if writer is not None:
                writer.close(
                    duration_seconds=summary.duration_seconds,
                    interrupted=summary.interrupted,
                )
                if writer.opened:
                    summary.block_id = writer.header.block_id
            if not dry_run and self.model_store is not None:
                self.model_store.save(model)
            self._state = OrchestratorState.LOGGED

        LOGGER.info(
            "Processed %d file(s): %d moved, %d planned, %d error(s)",
            summary.processed,
            summary.applied,
            len(summary.moves),
            len(summary.errors),
        )
        self._state = OrchestratorState.IDLE
        return summary

    @staticmethod
    def _place(mode: str, facts: ContentFacts) -> ClassificationResult:
        return PLACEMENTS[mode](facts)


__all__ = ["MODES", "OrchestratorState", "OrganizationOrchestrator", "resolve_target"]
