"""Terminal feature-module generator.

Resolves the target folder for a new module inside an Angular project,
renders the template set, drops test files the caller did not ask for and
stages the result into a :class:`VirtualTree`.
"""

from __future__ import annotations

import posixpath
import re
from typing import Any

from federated_scaffold.config import ScaffoldOptions
from federated_scaffold.utils import dasherize

from .templates import TemplateRenderer
from .tree import VirtualTree
from .workspace import ProjectDefinition


_SPEC_FILE = re.compile(r"\.spec\.ts$")
_TEST_ENTRY = re.compile(r"test\.ts$")


def filter_tests(files: dict[str, str], include_spec: bool) -> dict[str, str]:
    """Drop test files from a rendered file map.

    ``*test.ts`` entry points are always dropped; ``*.spec.ts`` files are
    dropped unless *include_spec* is set.
    """
    kept: dict[str, str] = {}
    for path, content in files.items():
        if _TEST_ENTRY.search(path):
            continue
        if not include_spec and _SPEC_FILE.search(path):
            continue
        kept[path] = content
    return kept


def resolve_folder_path(project: ProjectDefinition, options: ScaffoldOptions) -> str:
    """Folder the module is generated into.

    ``<sourceRoot>/<prefix>/<path>/<name>`` with the user-supplied *path* and
    *name* dasherized, e.g. ``src/app/features/my-terminal``.
    """
    relative = posixpath.join(options.path.strip("/"), options.name)
    return posixpath.normpath(posixpath.join(project.app_root, dasherize(relative)))


class ModuleGenerator:
    """Renders and stages the terminal module template set for one project."""

    template_prefix = "terminal"

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    def build_context(self, options: ScaffoldOptions) -> dict[str, Any]:
        context = options.model_dump()
        context["role"] = options.role.value
        context["type"] = options.role.value
        return context

    def materialize(
        self,
        project: ProjectDefinition,
        options: ScaffoldOptions,
    ) -> dict[str, str]:
        """Render the template set under the resolved folder."""
        folder = resolve_folder_path(project, options)
        return self.renderer.render_tree(
            self.template_prefix, folder, self.build_context(options)
        )

    @staticmethod
    def stage(tree: VirtualTree, files: dict[str, str]) -> list[str]:
        """Create every file in *tree*.

        Raises:
            FileAlreadyExistsError: If any target file already exists.
        """
        for path, content in files.items():
            tree.create(path, content)
        return list(files)

    def generate(
        self,
        tree: VirtualTree,
        project: ProjectDefinition,
        options: ScaffoldOptions,
    ) -> list[str]:
        """Materialize, filter and stage in one call."""
        files = filter_tests(self.materialize(project, options), options.spec)
        return self.stage(tree, files)
