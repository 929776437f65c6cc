"""Scaffolding workflow.

Runs one project generation from validation to the final dependency
install::

    NOT_STARTED -> PROBING_ENVIRONMENT -> INSTALLING_TEMPLATE_PACKAGE
    -> MATERIALIZING_TEMPLATE -> MERGING_MANIFEST
    -> INSTALLING_DEV_DEPENDENCIES -> INSTALLING_RUNTIME_DEPENDENCIES -> DONE

Any failure from the first write of ``package.json`` onwards moves the run to
ROLLING_BACK, which removes the generated files, and then to FAILED.  This
module is the only place that decides the process exit code.

Usage::

    installation my-app --template-package my-templates --type web --language typescript
    python -m installation my-app --template-package my-templates
"""

from __future__ import annotations

import asyncio
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from rich.markup import escape
from rich.panel import Panel

from installation.config import GenerateConfig
from installation.errors import (
    CwdMismatchError,
    InstallFailedError,
    InvalidProjectNameError,
    NameCollidesWithDependencyError,
    ScaffoldError,
    UnsafeTargetDirectoryError,
)
from installation.installer import DependencySpec, InstallRequest, InstallResult, dependency_specs, install
from installation.probe import (
    PackageManager,
    check_npm_version,
    check_yarn_version,
    cwd_mismatch_hint,
    detect_package_manager,
    ensure_cwd_consistency,
    probe_online,
    probe_registry,
)
from installation.rollback import RollbackReport, rollback
from installation.template import (
    TemplateManifest,
    TemplateReference,
    apply_template_manifest,
    load_template_manifest,
    materialize,
    write_initial_manifest,
)
from installation.utils import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
    working_directory,
)
from installation.validation import check_app_name, check_runtime_version, ensure_safe_directory


class RunState(str, Enum):
    NOT_STARTED = "not_started"
    PROBING_ENVIRONMENT = "probing_environment"
    INSTALLING_TEMPLATE_PACKAGE = "installing_template_package"
    MATERIALIZING_TEMPLATE = "materializing_template"
    MERGING_MANIFEST = "merging_manifest"
    INSTALLING_DEV_DEPENDENCIES = "installing_dev_dependencies"
    INSTALLING_RUNTIME_DEPENDENCIES = "installing_runtime_dependencies"
    DONE = "done"
    ROLLING_BACK = "rolling_back"
    FAILED = "failed"


@dataclass
class ScaffoldResult:
    """Final outcome of a run."""

    success: bool
    state: RunState
    root: Path | None = None
    app_name: str | None = None
    manager: PackageManager | None = None
    installs: list[InstallResult] = field(default_factory=list)
    error: str | None = None
    failed_state: RunState | None = None
    rollback: RollbackReport | None = None

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


class ScaffoldWorkflow:
    """Drives a single scaffolding run.

    Attributes:
        config: The run configuration.
        state: Current :class:`RunState`.
        manager: Package manager chosen during environment probing.
        use_pnp: Whether Plug'n'Play is still requested after version checks.
        is_online: Online status, probed once and reused by every install.
    """

    def __init__(self, config: GenerateConfig) -> None:
        self.config = config
        self.reference = TemplateReference(type=config.type, language=config.language)
        self.state = RunState.NOT_STARTED
        self.failed_state: RunState | None = None
        self.manager: PackageManager | None = None
        self.use_pnp = config.use_pnp
        self.is_online = True
        self.installs: list[InstallResult] = []

    def _enter(self, state: RunState) -> None:
        self.state = state

    @property
    def use_yarn(self) -> bool:
        return self.manager is PackageManager.YARN

    # ------------------------------------------------------------------
    # Pre-flight (no rollback: nothing has been generated yet)
    # ------------------------------------------------------------------

    async def _preflight(self) -> tuple[Path, str]:
        await check_runtime_version(self.config.use_typescript, self.config.probe)

        root = Path(self.config.name).resolve()
        app_name = root.name
        check_app_name(app_name, self.config.check_app_names)

        if root.exists() and not root.is_dir():
            raise UnsafeTargetDirectoryError(self.config.name, [root.name])
        root.mkdir(parents=True, exist_ok=True)
        ensure_safe_directory(root, self.config.name)

        console.print()
        console.print(
            f"Creating a new {escape(self.config.app_type)} app in [green]{escape(str(root))}[/green]."
        )
        console.print()
        return root, app_name

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _probe_environment(self, root: Path) -> None:
        self._enter(RunState.PROBING_ENVIRONMENT)
        probe = self.config.probe
        self.manager = await detect_package_manager(self.config.use_npm)

        if not self.use_yarn:
            await ensure_cwd_consistency(root)
            npm_info = await check_npm_version(probe)
            if not npm_info.meets_minimum:
                if npm_info.version:
                    print_warning(
                        f"You are using npm {npm_info.version} so the project will be "
                        "bootstrapped with an old unsupported version of tools.\n\n"
                        f"Please update to npm {probe.min_npm_version} or higher.\n"
                    )
                else:
                    print_warning("Could not determine your npm version.")
        elif self.use_pnp:
            yarn_info = await check_yarn_version(probe)
            if not yarn_info.meets_minimum:
                if yarn_info.version:
                    print_warning(
                        f"You are using Yarn {yarn_info.version} together with the --use-pnp "
                        "flag, but Plug'n'Play is only supported starting from the "
                        f"{probe.min_yarn_pnp_version} release.\n\n"
                        f"Please update to Yarn {probe.min_yarn_pnp_version} or higher.\n"
                    )
                else:
                    print_warning("Could not determine your Yarn version; disabling Plug'n'Play.")
                self.use_pnp = False

        if self.use_yarn and self.config.verbose:
            uses_default = await probe_registry(probe)
            registry = "default" if uses_default else "custom"
            console.print(f"[dim]Yarn is using the {registry} registry.[/dim]")

        print_info("Installing packages. This might take a couple of minutes.")
        self.is_online = await probe_online(self.use_yarn, probe)

    async def _install(self, root: Path, dependencies: list[DependencySpec], is_dev: bool) -> None:
        assert self.manager is not None
        request = InstallRequest.create(
            root,
            self.manager,
            dependencies,
            use_pnp=self.use_pnp,
            verbose=self.config.verbose,
            is_online=self.is_online,
            is_dev=is_dev,
        )
        result = await install(request)
        if self.config.verbose:
            console.print(f"[dim]{escape(result.command_line)}[/dim]")
        self.installs.append(result)

    async def _scaffold(self, root: Path) -> None:
        package = self.config.template_package_name

        await self._probe_environment(root)

        self._enter(RunState.INSTALLING_TEMPLATE_PACKAGE)
        console.print(f"Installing [cyan]{escape(package)}[/cyan] ...")
        console.print()
        await self._install(root, [DependencySpec(package)], is_dev=True)

        self._enter(RunState.MATERIALIZING_TEMPLATE)
        materialize(root, self.reference, package)

        self._enter(RunState.MERGING_MANIFEST)
        template: TemplateManifest = load_template_manifest(
            self.reference.manifest_path(root, package)
        )
        apply_template_manifest(root, template, self.use_yarn)

        self._enter(RunState.INSTALLING_DEV_DEPENDENCIES)
        dev_dependencies = dependency_specs(template.dev_dependencies)
        if dev_dependencies:
            await self._install(root, dev_dependencies, is_dev=True)

        self._enter(RunState.INSTALLING_RUNTIME_DEPENDENCIES)
        dependencies = dependency_specs(template.dependencies)
        if dependencies:
            await self._install(root, dependencies, is_dev=False)

        self._enter(RunState.DONE)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _report_preflight_failure(self, exc: Exception) -> None:
        if isinstance(exc, InvalidProjectNameError):
            print_error(
                f'Cannot create a project named "{escape(exc.name)}" because of npm naming restrictions:\n'
            )
            for reason in exc.reasons:
                print_error(f"  * {escape(reason)}")
            print_error("\nPlease choose a different project name.")
        elif isinstance(exc, NameCollidesWithDependencyError):
            print_error(
                f'Cannot create a project named "{escape(exc.name)}" because a dependency '
                "with the same name exists.\n"
                "Due to the way npm works, the following names are not allowed:\n"
            )
            for name in exc.reserved:
                console.print(f"  [cyan]{escape(name)}[/cyan]")
            print_error("\nPlease choose a different project name.")
        elif isinstance(exc, UnsafeTargetDirectoryError):
            console.print(
                f"The directory [green]{escape(exc.directory)}[/green] contains files that could conflict:"
            )
            console.print()
            for conflict in exc.conflicts:
                style = "blue" if conflict.endswith("/") else "default"
                console.print(f"  [{style}]{escape(conflict)}[/{style}]")
            console.print()
            console.print("Either try using a new directory name, or remove the files listed above.")
        else:
            print_error(escape(str(exc)))

    def _report_run_failure(self, exc: Exception) -> None:
        console.print()
        console.print("Aborting installation.")
        if isinstance(exc, InstallFailedError):
            console.print(f"  [cyan]{escape(exc.command)}[/cyan] has failed.")
        elif isinstance(exc, CwdMismatchError):
            print_error(
                "Could not start an npm process in the right directory.\n\n"
                f"The current directory is: {escape(exc.cwd)}\n"
                f"However, a newly started npm process runs in: {escape(exc.npm_cwd)}\n\n"
                "This is probably caused by a misconfigured system terminal shell."
            )
            hint = cwd_mismatch_hint()
            if hint:
                print_error(escape(hint))
        elif isinstance(exc, ScaffoldError):
            print_error(escape(str(exc)))
        else:
            print_error("Unexpected error. Please report it as a bug:")
            console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
        console.print()

    def _print_next_steps(self, app_name: str) -> None:
        manager = self.manager.value if self.manager else PackageManager.NPM.value
        console.print()
        console.print(
            Panel(
                f"Run the following command to start [cyan]{escape(app_name)}[/cyan] project:\n\n"
                f"  [cyan]cd {escape(app_name)}[/cyan]\n"
                f"  [cyan]{manager} start[/cyan]",
                title="[bold green]Next steps[/bold green]",
                border_style="green",
            )
        )
        console.print()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def _result(self, success: bool, **kwargs) -> ScaffoldResult:
        return ScaffoldResult(
            success=success,
            state=self.state,
            manager=self.manager,
            installs=list(self.installs),
            failed_state=self.failed_state,
            **kwargs,
        )

    async def run(self) -> ScaffoldResult:
        """Execute the run; never raises for scaffolding failures."""
        try:
            root, app_name = await self._preflight()
        except (ScaffoldError, OSError) as exc:
            self._report_preflight_failure(exc)
            self.failed_state = self.state
            self._enter(RunState.FAILED)
            return self._result(False, error=str(exc))

        try:
            write_initial_manifest(root, app_name)
            with working_directory(root):
                await self._scaffold(root)
        except Exception as exc:
            self.failed_state = self.state
            self._report_run_failure(exc)
            self._enter(RunState.ROLLING_BACK)
            report = rollback(root, app_name)
            console.print("Done.")
            self._enter(RunState.FAILED)
            return self._result(False, root=root, app_name=app_name, error=str(exc), rollback=report)

        print_success("Created successfully.")
        self._print_next_steps(app_name)
        return self._result(True, root=root, app_name=app_name)


async def generate_project(config: GenerateConfig) -> ScaffoldResult:
    """Scaffold one project as described by *config*."""
    return await ScaffoldWorkflow(config).run()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``installation`` / ``python -m installation``."""
    import argparse

    from pydantic import ValidationError

    parser = argparse.ArgumentParser(
        description="Create a new project from a template package",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  installation my-app --template-package my-templates\n"
            "  installation my-app --template-package my-templates --language typescript --use-npm\n"
        ),
    )
    parser.add_argument("name", help="Directory to create; its name becomes the package name")
    parser.add_argument("--template-package", default=None, help="Package providing the templates")
    parser.add_argument("--type", default=None, help="Template type (default: web)")
    parser.add_argument("--language", default=None, help="Template language (default: javascript)")
    parser.add_argument("--app-type", default=None, help="Label shown in messages (default: web)")
    parser.add_argument("--use-npm", action="store_true", default=None, help="Use npm even if Yarn is installed")
    parser.add_argument("--use-pnp", action="store_true", default=None, help="Use Yarn Plug'n'Play")
    parser.add_argument("--verbose", action="store_true", default=None, help="Print additional logs")
    parser.add_argument(
        "--reserved-name",
        action="append",
        default=None,
        dest="reserved_names",
        help="Name the project may not take (repeatable)",
    )

    args = parser.parse_args(argv)

    try:
        config = GenerateConfig.from_env(
            name=args.name,
            template_package_name=args.template_package,
            type=args.type,
            language=args.language,
            app_type=args.app_type,
            use_npm=args.use_npm,
            use_pnp=args.use_pnp,
            verbose=args.verbose,
            check_app_names=args.reserved_names,
        )
    except ValidationError as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid configuration:\n{escape(str(exc))}")
        sys.exit(1)

    result = asyncio.run(generate_project(config))
    if result.exit_code:
        sys.exit(result.exit_code)


if __name__ == "__main__":
    main()
