"""Task graph for dependency installation and federation setup.

Submits the follow-on work of a scaffold run to a :class:`Scheduler` with the
dependency edges the work needs::

    install <runtime dependency>                         (root, optional)
    install <federation package>  ->  run <federation ng-add>  ->  patch webpack config

The scheduler gives no ordering of its own, so every edge here is load
bearing: the config patch must read the webpack config only after the
federation generator has written it.  Handles are kept in a
:class:`TaskGraphContext` owned by the caller for one run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from federated_scaffold.config import FederationOptions
from federated_scaffold.errors import StageOutcome
from federated_scaffold.utils import print_info

from .manifest import has_dependency
from .tasks import CallableTask, PackageInstallTask, RunGeneratorTask, Scheduler, TaskHandle
from .webpack import apply_webpack_patch


@dataclass
class TaskGraphContext:
    """Handles submitted during one scaffold run."""

    install: TaskHandle | None = None
    federation_install: TaskHandle | None = None
    federation_wire: TaskHandle | None = None


def _after(handle: TaskHandle | None) -> list[TaskHandle]:
    return [handle] if handle is not None else []


def submit_dependency_install(
    scheduler: Scheduler,
    graph: TaskGraphContext,
    package_name: str,
    manifest_text: str,
    *,
    package_manager: str = "npm",
) -> TaskHandle | None:
    """Schedule an install of *package_name* unless the manifest already lists it.

    Returns the new handle, or ``None`` when the dependency is present.
    """
    if has_dependency(manifest_text, package_name):
        print_info(f"{package_name} already installed")
        return None
    graph.install = scheduler.submit(PackageInstallTask(package_name, package_manager))
    print_info(f"Installing {package_name}")
    return graph.install


def submit_federation_install(
    scheduler: Scheduler,
    graph: TaskGraphContext,
    package_name: str,
    *,
    package_manager: str = "npm",
) -> TaskHandle:
    """Schedule the install of the federation tooling package.

    Independent of the runtime dependency install; neither needs the other.
    """
    graph.federation_install = scheduler.submit(PackageInstallTask(package_name, package_manager))
    print_info(f"Installing {package_name}")
    return graph.federation_install


def submit_federation_wire(
    scheduler: Scheduler,
    graph: TaskGraphContext,
    options: FederationOptions,
    package_name: str,
    generator: str = "ng-add",
) -> TaskHandle:
    """Schedule the federation tooling's own setup generator.

    Runs after the federation install when one was submitted.
    """
    task = RunGeneratorTask(package_name, generator, options.as_generator_options())
    graph.federation_wire = scheduler.submit(task, _after(graph.federation_install))
    print_info(f"Configuring {package_name} with generator {generator}")
    return graph.federation_wire


def submit_config_patch(
    scheduler: Scheduler,
    graph: TaskGraphContext,
    options: FederationOptions,
    config_path: Path,
) -> TaskHandle:
    """Schedule the webpack config patch after the federation generator."""
    role = options.role

    def patch_config() -> StageOutcome:
        return apply_webpack_patch(config_path, role)

    task = CallableTask(f"patch {config_path.name} for {role.value}", patch_config)
    handle = scheduler.submit(task, _after(graph.federation_wire))
    print_info(f"Configuring {config_path} for {role.value} {options.project}")
    return handle
