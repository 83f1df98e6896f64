"""Planning, placement, and execution of organization runs."""

from .errors import InputError, MoveError, OrganizerError, UndoError
from .executor import MoveExecutor
from .models import FileOutcome, MoveOperation, OrganizationSummary, UndoSummary
from .orchestrator import MODES, OrchestratorState, OrganizationOrchestrator, resolve_target
from .planner import PathPlanner
from .undo import UndoEngine

__all__ = [
    "FileOutcome",
    "InputError",
    "MODES",
    "MoveError",
    "MoveExecutor",
    "MoveOperation",
    "OrchestratorState",
    "OrganizationOrchestrator",
    "OrganizationSummary",
    "OrganizerError",
    "PathPlanner",
    "UndoEngine",
    "UndoError",
    "UndoSummary",
    "resolve_target",
]
