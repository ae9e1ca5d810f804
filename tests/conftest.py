"""Shared pytest fixtures for the federated-scaffold test suite.

Provides reusable fixtures for:
- A sample Angular workspace on disk (angular.json, package.json, webpack configs)
- Realistic host/remote webpack.config.js contents
- A recording scheduler that captures submissions and dependency edges
- Ready-made Config and ScaffoldOptions instances
"""

from __future__ import annotations

import json
import textwrap
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from federated_scaffold.config import Config, ScaffoldOptions
from federated_scaffold.federation.tasks import Task, TaskHandle, TaskResult


# ---------------------------------------------------------------------------
# Webpack configs
# ---------------------------------------------------------------------------

HOST_WEBPACK_CONFIG = textwrap.dedent("""\
    const { shareAll, withModuleFederationPlugin } = require('@angular-architects/module-federation/webpack');

    module.exports = withModuleFederationPlugin({

      remotes: {
        "mfe1": "http://localhost:4201/remoteEntry.js",
      },

      shared: {
        ...shareAll({ singleton: true, strictVersion: true, requiredVersion: 'auto' }),
      },

    });
""")

REMOTE_WEBPACK_CONFIG = textwrap.dedent("""\
    const { shareAll, withModuleFederationPlugin } = require('@angular-architects/module-federation/webpack');

    module.exports = withModuleFederationPlugin({

      name: 'mfe1',

      exposes: {
        './Component': './projects/mfe1/src/app/app.component.ts',
      },

      shared: {
        ...shareAll({ singleton: true, strictVersion: true, requiredVersion: 'auto' }),
      },

    });
""")


@pytest.fixture
def host_webpack_config() -> str:
    return HOST_WEBPACK_CONFIG


@pytest.fixture
def remote_webpack_config() -> str:
    return REMOTE_WEBPACK_CONFIG


# ---------------------------------------------------------------------------
# Workspace on disk
# ---------------------------------------------------------------------------


def _angular_json() -> dict[str, Any]:
    return {
        "version": 1,
        "projects": {
            "shell": {
                "projectType": "application",
                "root": "projects/shell",
                "sourceRoot": "projects/shell/src",
                "prefix": "app",
            },
            "mfe1": {
                "projectType": "application",
                "root": "projects/mfe1",
                "sourceRoot": "projects/mfe1/src",
                "prefix": "app",
            },
        },
    }


def _package_json(dependencies: dict[str, str] | None = None) -> dict[str, Any]:
    return {
        "name": "workspace",
        "version": "0.0.0",
        "dependencies": dependencies if dependencies is not None else {
            "@angular/core": "^17.0.0",
            "@angular/common": "^17.0.0",
            "rxjs": "~7.8.0",
        },
        "devDependencies": {"@angular/cli": "^17.0.0"},
    }


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Angular workspace with a host ``shell`` and a remote ``mfe1`` project."""
    root = tmp_path / "workspace"
    root.mkdir()
    (root / "angular.json").write_text(json.dumps(_angular_json(), indent=2), encoding="utf-8")
    (root / "package.json").write_text(json.dumps(_package_json(), indent=2), encoding="utf-8")
    for project, content in (("shell", HOST_WEBPACK_CONFIG), ("mfe1", REMOTE_WEBPACK_CONFIG)):
        project_dir = root / "projects" / project
        project_dir.mkdir(parents=True)
        (project_dir / "webpack.config.js").write_text(content, encoding="utf-8")
    yield root


@pytest.fixture
def write_package_json():
    """Overwrite the workspace package.json with the given dependencies."""
    def _write(root: Path, dependencies: dict[str, str] | None) -> None:
        document = _package_json(dependencies)
        if dependencies is None:
            del document["dependencies"]
        (root / "package.json").write_text(json.dumps(document, indent=2), encoding="utf-8")
    return _write


@pytest.fixture
def config(workspace: Path) -> Config:
    return Config(workspace_root=workspace)


@pytest.fixture
def host_options() -> ScaffoldOptions:
    return ScaffoldOptions(project="shell", role="host", port=4200, name="myTerminal")


@pytest.fixture
def remote_options() -> ScaffoldOptions:
    return ScaffoldOptions(project="mfe1", role="remote", port="4201", name="terminal", spec=False)


# ---------------------------------------------------------------------------
# Recording scheduler
# ---------------------------------------------------------------------------


@dataclass
class RecordedSubmission:
    handle: TaskHandle
    task: Task
    depends_on: list[TaskHandle]


@dataclass
class RecordingScheduler:
    """In-memory scheduler that records submission order and edges."""

    submissions: list[RecordedSubmission] = field(default_factory=list)

    def submit(self, task: Task, depends_on: Sequence[TaskHandle] = ()) -> TaskHandle:
        handle = TaskHandle(len(self.submissions) + 1, task.describe())
        self.submissions.append(RecordedSubmission(handle, task, list(depends_on)))
        return handle

    def edges_of(self, handle: TaskHandle) -> list[TaskHandle]:
        return next(s.depends_on for s in self.submissions if s.handle == handle)

    def describe_plan(self) -> list[str]:
        return [s.handle.description for s in self.submissions]

    async def run(self) -> list[TaskResult]:
        return []


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()
