"""federated-scaffold configuration.

Typed configuration for the scaffold pipeline and the generator options it
consumes.  All settings use Pydantic v2 models so they are validated at
construction time and can be serialised to/from JSON or environment variables.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from federated_scaffold.errors import InvalidOptionsError, UnsupportedRoleError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Role(str, Enum):
    """Module Federation role of the target project."""
    HOST = "host"
    REMOTE = "remote"

    @classmethod
    def coerce(cls, value: Role | str) -> Role:
        """Return the ``Role`` for *value* or raise ``UnsupportedRoleError``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedRoleError(value) from None


# ---------------------------------------------------------------------------
# Runtime configuration
# ---------------------------------------------------------------------------


class FederationConfig(BaseModel):
    """Where the Module Federation tooling comes from."""

    package: str = Field(default="@angular-architects/module-federation")
    generator: str = Field(default="ng-add")


class Config(BaseModel):
    """Global federated-scaffold configuration.

    Created once by the CLI (or by tests) and passed to ``ScaffoldPipeline``.
    File names are relative to ``workspace_root``; the webpack config name is
    relative to each project's ``root``.
    """

    workspace_root: Path = Field(default=Path("."))
    workspace_manifest: str = Field(default="angular.json")
    package_manifest: str = Field(default="package.json")
    webpack_config_name: str = Field(default="webpack.config.js")
    runtime_dependency: str = Field(
        default="ng-terminal", description="Package the scaffolded component imports"
    )
    federation: FederationConfig = Field(default_factory=FederationConfig)
    package_manager: str = Field(default="npm")
    command_timeout: int = Field(default=300, ge=10, description="Per-task timeout in seconds")
    dry_run: bool = Field(default=False, description="Print planned writes and tasks only")
    skip_install: bool = Field(default=False, description="Do not schedule any tasks")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            MFS_WORKSPACE_ROOT, MFS_RUNTIME_DEPENDENCY, MFS_PACKAGE_MANAGER,
            MFS_COMMAND_TIMEOUT, MFS_FEDERATION_PACKAGE, MFS_DRY_RUN,
            MFS_SKIP_INSTALL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("MFS_WORKSPACE_ROOT"):
            kwargs["workspace_root"] = Path(os.environ["MFS_WORKSPACE_ROOT"])
        if os.environ.get("MFS_RUNTIME_DEPENDENCY"):
            kwargs["runtime_dependency"] = os.environ["MFS_RUNTIME_DEPENDENCY"]
        if os.environ.get("MFS_PACKAGE_MANAGER"):
            kwargs["package_manager"] = os.environ["MFS_PACKAGE_MANAGER"]
        if os.environ.get("MFS_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["MFS_COMMAND_TIMEOUT"])
        if os.environ.get("MFS_FEDERATION_PACKAGE"):
            kwargs["federation"] = FederationConfig(package=os.environ["MFS_FEDERATION_PACKAGE"])
        kwargs["dry_run"] = _env_flag("MFS_DRY_RUN")
        kwargs["skip_install"] = _env_flag("MFS_SKIP_INSTALL")
        return cls(**kwargs)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Generator options
# ---------------------------------------------------------------------------


class FederationOptions(BaseModel):
    """Options handed to the federation generators: ``{role, project, port}``."""

    model_config = ConfigDict(frozen=True)

    role: Role
    project: str = Field(..., min_length=1)
    port: int = Field(..., ge=0)

    @classmethod
    def from_raw(cls, role: Role | str, project: str, port: int | str) -> "FederationOptions":
        """Coerce raw values; ``port`` must become a non-negative integer.

        Raises:
            UnsupportedRoleError: If *role* is not ``host`` or ``remote``.
            InvalidOptionsError: If *port* or *project* is invalid.
        """
        role = Role.coerce(role)
        try:
            return cls(role=role, project=project, port=port)
        except ValidationError as exc:
            raise InvalidOptionsError(str(exc)) from exc

    def as_generator_options(self) -> dict[str, Any]:
        """Options in the shape the federation ``ng-add`` generator expects."""
        return {"type": self.role.value, "project": self.project, "port": self.port}


class ScaffoldOptions(BaseModel):
    """Options for the ``add`` generator.

    ``type`` is accepted as an alias of ``role``.  ``port`` may be given as a
    string and is coerced to a non-negative integer.
    """

    model_config = ConfigDict(populate_by_name=True)

    project: str = Field(..., min_length=1, description="Workspace project identifier")
    role: Role = Field(..., validation_alias=AliasChoices("role", "type"))
    port: int = Field(..., ge=0)
    name: str = Field(..., min_length=1, description="Name of the new module")
    path: str = Field(default="", description="Insertion path below <sourceRoot>/<prefix>")
    spec: bool = Field(default=True, description="Keep generated .spec.ts files")

    @classmethod
    def from_raw(cls, **raw: Any) -> "ScaffoldOptions":
        """Validate raw CLI/schema input.

        Raises:
            UnsupportedRoleError: If the role is not ``host`` or ``remote``.
            InvalidOptionsError: For any other validation failure, such as a
                port that cannot be coerced to a non-negative integer.
        """
        role = raw.get("role", raw.get("type"))
        if role is not None:
            Role.coerce(role)
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise InvalidOptionsError(str(exc)) from exc

    def federation_options(self) -> FederationOptions:
        return FederationOptions(role=self.role, project=self.project, port=self.port)
