"""Module scaffolding: virtual tree, templates and the terminal module generator.

Quick usage::

    from federated_scaffold.scaffolder import ModuleGenerator, VirtualTree, read_workspace

    tree = VirtualTree("/path/to/workspace")
    project = read_workspace(tree).get_project("shell")
    ModuleGenerator().generate(tree, project, options)
    await tree.commit()
"""

from federated_scaffold.scaffolder.generator import (
    ModuleGenerator,
    filter_tests,
    resolve_folder_path,
)
from federated_scaffold.scaffolder.templates import TemplateRenderer
from federated_scaffold.scaffolder.tree import FileAction, VirtualTree
from federated_scaffold.scaffolder.workspace import (
    ProjectDefinition,
    WorkspaceDefinition,
    read_workspace,
)

__all__ = [
    "FileAction",
    "ModuleGenerator",
    "ProjectDefinition",
    "TemplateRenderer",
    "VirtualTree",
    "WorkspaceDefinition",
    "filter_tests",
    "read_workspace",
    "resolve_folder_path",
]
