"""Angular workspace manifest (``angular.json``) models and lookup."""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from federated_scaffold.errors import (
    InvalidWorkspaceError,
    ProjectNotFoundError,
    WorkspaceNotFoundError,
)

from .tree import VirtualTree


class ProjectDefinition(BaseModel):
    """The subset of an ``angular.json`` project entry the scaffolder uses."""

    model_config = ConfigDict(populate_by_name=True)

    root: str = Field(default="", description="Project root, e.g. 'projects/shell'")
    source_root: str = Field(
        default="src", alias="sourceRoot", description="Source root, e.g. 'projects/shell/src'"
    )
    prefix: str = Field(default="app", description="Component selector prefix")

    @property
    def app_root(self) -> str:
        """Directory new feature modules are generated below."""
        return f"{self.source_root}/{self.prefix}"


class WorkspaceDefinition(BaseModel):
    """Top-level ``angular.json`` document."""

    projects: dict[str, ProjectDefinition] = Field(default_factory=dict)

    def get_project(self, name: str) -> ProjectDefinition:
        try:
            return self.projects[name]
        except KeyError:
            raise ProjectNotFoundError(name) from None


def read_workspace(tree: VirtualTree, path: str = "angular.json") -> WorkspaceDefinition:
    """Read and validate the workspace manifest at *path*.

    Raises:
        WorkspaceNotFoundError: If the manifest is missing.
        InvalidWorkspaceError: If it is not valid JSON or lacks the expected
            ``projects`` shape.
    """
    content = tree.read_text(path)
    if content is None:
        raise WorkspaceNotFoundError(path)
    try:
        return WorkspaceDefinition.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise InvalidWorkspaceError(f"{path} is not a valid workspace manifest: {exc}") from exc
