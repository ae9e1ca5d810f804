"""Error taxonomy shared by every scaffold stage.

Fatal conditions are raised as :class:`ScaffoldError` subclasses and abort the
pipeline.  Soft conditions and best-effort no-ops are never raised; they are
reported as :class:`StageOutcome` values so callers can tell them apart
without unwinding.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ---------------------------------------------------------------------------
# Severity
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    """How a stage ended."""
    OK = "ok"
    NOOP = "noop"
    SOFT = "soft"
    FATAL = "fatal"


# ---------------------------------------------------------------------------
# Fatal errors
# ---------------------------------------------------------------------------


class ScaffoldError(Exception):
    """Base class for fatal scaffold failures."""

    severity = Severity.FATAL


class WorkspaceNotFoundError(ScaffoldError):
    """The workspace manifest (``angular.json``) is missing."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path} file not found")


class InvalidWorkspaceError(ScaffoldError):
    """The workspace manifest exists but cannot be understood."""


class ProjectNotFoundError(ScaffoldError):
    """The requested project is not declared in the workspace manifest."""

    def __init__(self, project: str) -> None:
        self.project = project
        super().__init__(f"Project {project!r} not found in workspace")


class UnsupportedRoleError(ScaffoldError):
    """A federation role other than ``host`` or ``remote`` was requested."""

    def __init__(self, role: object) -> None:
        self.role = role
        super().__init__(f"Option {role} is not supported")


class ManifestNotFoundError(ScaffoldError):
    """The package manifest (``package.json``) is missing."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path} file not found")


class ManifestParseError(ScaffoldError):
    """The package manifest could not be parsed."""


class InvalidOptionsError(ScaffoldError):
    """Generator options failed validation (e.g. a non-numeric port)."""


class FileAlreadyExistsError(ScaffoldError):
    """A template would overwrite a file that already exists in the tree."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path {path!r} already exists")


# ---------------------------------------------------------------------------
# Stage outcomes
# ---------------------------------------------------------------------------


class Stage(str, Enum):
    """Pipeline stages, in execution order."""
    RESOLVE_PATHS = "resolve-paths"
    MATERIALIZE_TEMPLATES = "materialize-templates"
    FILTER_TESTS = "filter-tests"
    INSTALL_DEPENDENCY = "probe-and-install-dependency"
    INSTALL_FEDERATION = "install-federation-tooling"
    WIRE_FEDERATION = "wire-federation"
    PATCH_CONFIG = "patch-config"
    DONE = "done"


@dataclass(frozen=True)
class StageOutcome:
    """Result value recorded for each pipeline stage."""

    stage: Stage
    severity: Severity
    message: str = ""

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL
