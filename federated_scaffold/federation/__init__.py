"""Module Federation wiring: manifest probing, task graph and webpack patching."""

from federated_scaffold.federation.graph import (
    TaskGraphContext,
    submit_config_patch,
    submit_dependency_install,
    submit_federation_install,
    submit_federation_wire,
)
from federated_scaffold.federation.manifest import has_dependency, read_package_manifest
from federated_scaffold.federation.tasks import (
    CallableTask,
    LocalTaskEngine,
    PackageInstallTask,
    RunGeneratorTask,
    Scheduler,
    Task,
    TaskEngine,
    TaskHandle,
    TaskResult,
    TaskStatus,
)
from federated_scaffold.federation.webpack import (
    apply_webpack_patch,
    patch_webpack_config,
    update_webpack_in_tree,
)

__all__ = [
    "CallableTask",
    "LocalTaskEngine",
    "PackageInstallTask",
    "RunGeneratorTask",
    "Scheduler",
    "Task",
    "TaskEngine",
    "TaskGraphContext",
    "TaskHandle",
    "TaskResult",
    "TaskStatus",
    "apply_webpack_patch",
    "has_dependency",
    "patch_webpack_config",
    "read_package_manifest",
    "submit_config_patch",
    "submit_dependency_install",
    "submit_federation_install",
    "submit_federation_wire",
    "update_webpack_in_tree",
]
