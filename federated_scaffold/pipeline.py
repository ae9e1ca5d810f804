"""federated-scaffold pipeline orchestrator.

Implements the linear scaffold pipeline:

resolve-paths -> materialize-templates -> filter-tests ->
probe-and-install-dependency -> install-federation-tooling ->
wire-federation -> patch-config -> done

The synchronous :meth:`ScaffoldPipeline.run` stages files in a virtual tree
and submits follow-on tasks.  :meth:`ScaffoldPipeline.execute` then commits
the tree and runs the task engine.  A fatal error in any stage aborts the
remaining stages and nothing is written.

Usage::

    federated-scaffold add --project shell --type host --port 4200 --name my-terminal
    federated-scaffold update-webpack --project shell --type host
"""

from __future__ import annotations

import asyncio
import posixpath
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from rich.markup import escape

from federated_scaffold.config import Config, FederationOptions, Role, ScaffoldOptions
from federated_scaffold.errors import ManifestParseError, ScaffoldError, Severity, Stage, StageOutcome
from federated_scaffold.federation.graph import (
    TaskGraphContext,
    submit_config_patch,
    submit_dependency_install,
    submit_federation_install,
    submit_federation_wire,
)
from federated_scaffold.federation.manifest import read_package_manifest
from federated_scaffold.federation.tasks import LocalTaskEngine, TaskEngine, TaskResult, TaskStatus
from federated_scaffold.federation.webpack import update_webpack_in_tree
from federated_scaffold.scaffolder.generator import ModuleGenerator, filter_tests, resolve_folder_path
from federated_scaffold.scaffolder.tree import VirtualTree
from federated_scaffold.scaffolder.workspace import ProjectDefinition, read_workspace
from federated_scaffold.utils import (
    console,
    format_duration,
    print_error,
    print_info,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
)


# ---------------------------------------------------------------------------
# Run state & result
# ---------------------------------------------------------------------------


@dataclass
class ScaffoldRun:
    """State handed from stage to stage within one run."""

    options: ScaffoldOptions
    graph: TaskGraphContext = field(default_factory=TaskGraphContext)
    project: ProjectDefinition | None = None
    federation: FederationOptions | None = None
    folder: str = ""
    config_path: Path | None = None
    files: dict[str, str] = field(default_factory=dict)


@dataclass
class PipelineResult:
    """Outcome of a pipeline run.

    Attributes:
        outcomes: One entry per stage that ran, in order.
        staged_files: Tree paths created by the run.
        tasks: Results reported by the task engine (after ``execute``).
        error: The fatal error that aborted the run, if any.
    """

    outcomes: list[StageOutcome] = field(default_factory=list)
    staged_files: list[str] = field(default_factory=list)
    tasks: list[TaskResult] = field(default_factory=list)
    error: ScaffoldError | None = None

    @property
    def fatal(self) -> StageOutcome | None:
        return next((o for o in self.outcomes if o.is_fatal), None)

    @property
    def failed_tasks(self) -> list[TaskResult]:
        return [t for t in self.tasks if t.status is not TaskStatus.COMPLETED]

    @property
    def success(self) -> bool:
        return self.fatal is None and not self.failed_tasks

    def outcome_for(self, stage: Stage) -> StageOutcome | None:
        return next((o for o in self.outcomes if o.stage is stage), None)

    def raise_for_fatal(self) -> None:
        """Re-raise the fatal error, if the run had one."""
        if self.error is not None:
            raise self.error


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class ScaffoldPipeline:
    """Drives one scaffold invocation against a workspace.

    Attributes:
        config: Runtime configuration (workspace root, package names, ...).
        tree: Staging tree over ``config.workspace_root``.
        engine: Receives the follow-on tasks; runs them in :meth:`execute`.
            Without an injected engine each run gets a fresh
            :class:`LocalTaskEngine`.
        generator: Renders the terminal module templates.
    """

    def __init__(
        self,
        config: Config,
        engine: TaskEngine | None = None,
        tree: VirtualTree | None = None,
        generator: ModuleGenerator | None = None,
    ) -> None:
        self.config = config
        self.tree = tree or VirtualTree(config.workspace_root)
        self._owns_engine = engine is None
        self.engine: TaskEngine = engine or self._new_engine()
        self.generator = generator or ModuleGenerator()

    def _new_engine(self) -> TaskEngine:
        return LocalTaskEngine(self.config.workspace_root, timeout=self.config.command_timeout)

    def _stages(self) -> list[tuple[Stage, Callable[[ScaffoldRun], StageOutcome]]]:
        return [
            (Stage.RESOLVE_PATHS, self._resolve_paths),
            (Stage.MATERIALIZE_TEMPLATES, self._materialize_templates),
            (Stage.FILTER_TESTS, self._filter_tests),
            (Stage.INSTALL_DEPENDENCY, self._install_dependency),
            (Stage.INSTALL_FEDERATION, self._install_federation),
            (Stage.WIRE_FEDERATION, self._wire_federation),
            (Stage.PATCH_CONFIG, self._patch_config),
        ]

    def run(self, options: ScaffoldOptions) -> PipelineResult:
        """Run every synchronous stage; stop at the first fatal error."""
        if self._owns_engine:
            self.engine = self._new_engine()
        state = ScaffoldRun(options=options)
        result = PipelineResult()

        for stage, method in self._stages():
            print_stage_header(stage.value)
            try:
                outcome = method(state)
            except ScaffoldError as exc:
                result.error = exc
                result.outcomes.append(StageOutcome(stage, Severity.FATAL, str(exc)))
                print_error(f"{stage.value} failed: {escape(str(exc))}")
                break
            result.outcomes.append(outcome)
        else:
            result.outcomes.append(StageOutcome(Stage.DONE, Severity.OK))

        result.staged_files = [action.path for action in self.tree.actions]
        return result

    async def execute(self, options: ScaffoldOptions) -> PipelineResult:
        """Run the stages, commit the tree and execute the submitted tasks.

        Nothing is committed or executed after a fatal error.  With
        ``config.dry_run`` the planned writes and tasks are printed instead.
        """
        start = time.monotonic()
        result = self.run(options)
        if result.fatal is not None:
            self.tree.discard()
        elif self.config.dry_run:
            for path in result.staged_files:
                print_info(f"CREATE {path}")
            for line in self.engine.describe_plan():
                print_info(f"TASK {line}")
            self.tree.discard()
        else:
            await self.tree.commit()
            result.tasks = await self.engine.run()
        _print_final_summary(result, time.monotonic() - start)
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _resolve_paths(self, state: ScaffoldRun) -> StageOutcome:
        workspace = read_workspace(self.tree, self.config.workspace_manifest)
        project = workspace.get_project(state.options.project)
        state.project = project
        state.federation = FederationOptions.from_raw(
            state.options.role, state.options.project, state.options.port
        )
        state.folder = resolve_folder_path(project, state.options)
        state.config_path = (
            self.config.workspace_root / project.root / self.config.webpack_config_name
        )
        return StageOutcome(Stage.RESOLVE_PATHS, Severity.OK, state.folder)

    def _materialize_templates(self, state: ScaffoldRun) -> StageOutcome:
        state.files = self.generator.materialize(state.project, state.options)
        return StageOutcome(
            Stage.MATERIALIZE_TEMPLATES, Severity.OK, f"{len(state.files)} files rendered"
        )

    def _filter_tests(self, state: ScaffoldRun) -> StageOutcome:
        kept = filter_tests(state.files, state.options.spec)
        dropped = len(state.files) - len(kept)
        state.files = kept
        self.generator.stage(self.tree, kept)
        for path in kept:
            print_info(f"CREATE {path}")
        severity = Severity.OK if dropped else Severity.NOOP
        return StageOutcome(Stage.FILTER_TESTS, severity, f"{dropped} test files dropped")

    def _install_dependency(self, state: ScaffoldRun) -> StageOutcome:
        if self.config.skip_install:
            return StageOutcome(Stage.INSTALL_DEPENDENCY, Severity.NOOP, "installs skipped")
        manifest = read_package_manifest(self.tree, self.config.package_manifest)
        try:
            handle = submit_dependency_install(
                self.engine,
                state.graph,
                self.config.runtime_dependency,
                manifest,
                package_manager=self.config.package_manager,
            )
        except ManifestParseError as exc:
            print_warning(f"Not installing {self.config.runtime_dependency}: {escape(str(exc))}")
            return StageOutcome(Stage.INSTALL_DEPENDENCY, Severity.SOFT, str(exc))
        if handle is None:
            return StageOutcome(
                Stage.INSTALL_DEPENDENCY,
                Severity.NOOP,
                f"{self.config.runtime_dependency} already installed",
            )
        return StageOutcome(Stage.INSTALL_DEPENDENCY, Severity.OK, f"task #{handle.id}")

    def _install_federation(self, state: ScaffoldRun) -> StageOutcome:
        if self.config.skip_install:
            return StageOutcome(Stage.INSTALL_FEDERATION, Severity.NOOP, "installs skipped")
        handle = submit_federation_install(
            self.engine,
            state.graph,
            self.config.federation.package,
            package_manager=self.config.package_manager,
        )
        return StageOutcome(Stage.INSTALL_FEDERATION, Severity.OK, f"task #{handle.id}")

    def _wire_federation(self, state: ScaffoldRun) -> StageOutcome:
        if self.config.skip_install:
            return StageOutcome(Stage.WIRE_FEDERATION, Severity.NOOP, "generators skipped")
        handle = submit_federation_wire(
            self.engine,
            state.graph,
            state.federation,
            self.config.federation.package,
            self.config.federation.generator,
        )
        return StageOutcome(Stage.WIRE_FEDERATION, Severity.OK, f"task #{handle.id}")

    def _patch_config(self, state: ScaffoldRun) -> StageOutcome:
        handle = submit_config_patch(self.engine, state.graph, state.federation, state.config_path)
        return StageOutcome(Stage.PATCH_CONFIG, Severity.OK, f"task #{handle.id}")


# ---------------------------------------------------------------------------
# Standalone webpack update
# ---------------------------------------------------------------------------


async def update_webpack(config: Config, project_name: str, role: Role | str) -> StageOutcome:
    """Patch one project's webpack config in place, outside a scaffold run.

    Raises:
        WorkspaceNotFoundError: If ``angular.json`` is missing.
        ProjectNotFoundError: If *project_name* is not in the workspace.
        UnsupportedRoleError: If *role* is not ``host`` or ``remote``.
    """
    role = Role.coerce(role)
    tree = VirtualTree(config.workspace_root)
    project = read_workspace(tree, config.workspace_manifest).get_project(project_name)
    config_path = posixpath.join(project.root or ".", config.webpack_config_name)
    outcome = update_webpack_in_tree(tree, config_path, role)
    if config.dry_run:
        for action in tree.actions:
            print_info(f"UPDATE {action.path}")
    else:
        await tree.commit()
    return outcome


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _print_final_summary(result: PipelineResult, elapsed: float) -> None:
    rows = {outcome.stage.value: escape(f"{outcome.severity.value} {outcome.message}".strip())
            for outcome in result.outcomes}
    for task in result.tasks:
        rows[f"task #{task.handle.id}"] = f"{task.status.value} {task.handle.description}"
    rows["duration"] = format_duration(elapsed)
    print_summary_table(rows, title="Scaffold Summary")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``federated-scaffold``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="federated-scaffold",
        description="Scaffold an ng-terminal module and wire Module Federation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  federated-scaffold add --project shell --type host --port 4200 --name terminal\n"
            "  federated-scaffold add --project mfe1 --type remote --port 4201 --name term --no-spec\n"
            "  federated-scaffold update-webpack --project shell --type host\n"
        ),
    )
    parser.add_argument("--workspace", "-w", default=None, help="Workspace root (default: cwd)")
    parser.add_argument("--dry-run", action="store_true", help="Print planned changes only")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Scaffold a terminal module and set up federation")
    add.add_argument("--project", required=True, help="Workspace project name")
    add.add_argument("--type", "--role", dest="role", required=True, help="host or remote")
    add.add_argument("--port", required=True, help="Dev-server port for the project")
    add.add_argument("--name", required=True, help="Name of the new module")
    add.add_argument("--path", default="", help="Path below <sourceRoot>/<prefix>")
    add.add_argument("--no-spec", dest="spec", action="store_false", help="Skip .spec.ts files")
    add.add_argument("--skip-install", action="store_true", help="Do not install or run generators")

    update = subparsers.add_parser("update-webpack", help="Normalize a project's webpack config")
    update.add_argument("--project", required=True, help="Workspace project name")
    update.add_argument("--type", "--role", dest="role", required=True, help="host or remote")

    args = parser.parse_args(argv)

    config = Config.from_env()
    if args.workspace:
        config.workspace_root = Path(args.workspace)
    if args.dry_run:
        config.dry_run = True

    try:
        if args.command == "add":
            if args.skip_install:
                config.skip_install = True
            options = ScaffoldOptions.from_raw(
                project=args.project,
                role=args.role,
                port=args.port,
                name=args.name,
                path=args.path,
                spec=args.spec,
            )
            result = asyncio.run(ScaffoldPipeline(config).execute(options))
            result.raise_for_fatal()
            if not result.success:
                print_error("Some follow-on tasks did not complete.")
                sys.exit(1)
        else:
            outcome = asyncio.run(update_webpack(config, args.project, args.role))
            if outcome.severity is Severity.SOFT:
                sys.exit(1)
    except ScaffoldError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    print_success("Done.")


if __name__ == "__main__":
    main()
