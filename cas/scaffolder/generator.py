"""Main scaffolding orchestrator.

Takes a ``ScaffoldOptions`` and turns the template repository into a new
project directory: clone, strip VCS metadata, prune deselected components,
substitute project metadata, inject bundled modules, then optionally run
``git init`` and the package manager's install command.

Stages run strictly in sequence.  The first three (connectivity, target
conflict, clone) are fatal on failure; everything afterwards only produces
warnings.  Every mutating stage is announced through ``_announce`` so a dry
run records exactly the same action trace as a real run.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path

from jinja2 import TemplateError
from pydantic import BaseModel, Field

from cas.config import INSTALL_COMMANDS, ScaffoldOptions, Settings
from cas.output import ConsoleSink, OutputSink
from cas.utils import (
    CommandRunner,
    directory_exists,
    is_online,
    remove_directory,
    run_command,
)

from .modules import ModuleInjectionError, ModuleInjector, build_context
from .substitution import TemplateVariables, collect_template_files, process_template_file

# ---------------------------------------------------------------------------
# Errors and results
# ---------------------------------------------------------------------------


class ErrorKind(str, Enum):
    """Classification of fatal scaffolding errors."""
    NETWORK_UNAVAILABLE = "network_unavailable"
    TARGET_EXISTS = "target_exists"
    CLONE_FAILED = "clone_failed"
    TIMEOUT = "timeout"


class ScaffoldError(Exception):
    """Raised by a fatal stage; converted into a failed ``ScaffoldResult``."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        self.kind = kind
        super().__init__(message)


class ScaffoldResult(BaseModel):
    """Outcome of one scaffolding run."""

    success: bool
    project_path: Path
    errors: list[str] = Field(default_factory=list, description="Fatal errors")
    warnings: list[str] = Field(default_factory=list, description="Non-fatal problems")
    error_kind: ErrorKind | None = None
    actions: list[str] = Field(
        default_factory=list,
        description="Ordered descriptions of every mutating stage",
    )

    @property
    def messages(self) -> list[str]:
        """Errors followed by warnings, in the order they occurred."""
        return [*self.errors, *self.warnings]


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Scaffolder:
    """Runs the scaffolding stages for one ``ScaffoldOptions``.

    Args:
        options: The resolved configuration.
        settings: Template source and timeouts; defaults to ``Settings()``.
        sink: Progress output; defaults to the Rich console.
        runner: Command runner, ``run_command`` by default.
        cwd: Base directory that ``options.target_directory`` is resolved
            against; defaults to the process working directory.
        injector: Renders bundled modules.
    """

    def __init__(
        self,
        options: ScaffoldOptions,
        settings: Settings | None = None,
        *,
        sink: OutputSink | None = None,
        runner: CommandRunner | None = None,
        cwd: str | Path | None = None,
        injector: ModuleInjector | None = None,
    ) -> None:
        self.options = options
        self.settings = settings or Settings()
        self.sink: OutputSink = sink or ConsoleSink()
        self.runner: CommandRunner = runner or run_command
        self.injector = injector or ModuleInjector()
        base = Path(cwd) if cwd is not None else Path.cwd()
        self.project_path = (base / options.target_directory).resolve()

        self.actions: list[str] = []
        self.warnings: list[str] = []

    # -- Public API --------------------------------------------------------

    async def scaffold(self) -> ScaffoldResult:
        """Run every stage and return the aggregated result."""
        self.actions = []
        self.warnings = []

        try:
            await self._check_connectivity()
            await self._check_target()
            await self._clone()
        except ScaffoldError as exc:
            return ScaffoldResult(
                success=False,
                project_path=self.project_path,
                errors=[str(exc)],
                warnings=list(self.warnings),
                error_kind=exc.kind,
                actions=list(self.actions),
            )

        await self._remove_vcs_metadata()
        await self._prune_components()
        # Computed once so every stage stamps the same year.
        variables = TemplateVariables.from_options(self.options)
        await self._substitute_variables(variables)
        await self._inject_modules(variables)
        await self._init_vcs()
        await self._install_dependencies()

        return ScaffoldResult(
            success=True,
            project_path=self.project_path,
            warnings=list(self.warnings),
            actions=list(self.actions),
        )

    # -- Stage helpers -----------------------------------------------------

    def _announce(self, description: str) -> bool:
        """Record a mutating stage.

        Returns ``True`` under dry-run, in which case the caller must skip
        the actual work.
        """
        self.actions.append(description)
        if self.options.dry_run:
            self.sink.dry_run(description)
            return True
        self.sink.action(description)
        return False

    def _warn(self, message: str, remedy: str | None = None) -> None:
        self.sink.warning(message)
        self.warnings.append(message)
        if remedy:
            self.warnings.append(remedy)

    # -- 1. Connectivity ---------------------------------------------------

    async def _check_connectivity(self) -> None:
        if self.options.dry_run:
            self.sink.info("Network check skipped (dry run)")
            return

        self.sink.action("checking network connectivity")
        online = await is_online(
            self.settings.template_repo,
            timeout=self.settings.network_timeout,
            runner=self.runner,
        )
        if not online:
            self.sink.failure("Network check failed")
            raise ScaffoldError(
                ErrorKind.NETWORK_UNAVAILABLE,
                "No network connectivity. Please check your internet connection and try again.",
            )
        self.sink.success("Network connectivity verified")

    # -- 2. Target conflict ------------------------------------------------

    async def _check_target(self) -> None:
        # A plain file or dangling symlink at the target is a conflict too.
        if not self.project_path.exists() and not self.project_path.is_symlink():
            return

        if not self.options.force_overwrite:
            raise ScaffoldError(
                ErrorKind.TARGET_EXISTS,
                f'Directory "{self.options.target_directory}" already exists. '
                "Use --force to overwrite.",
            )

        if self._announce(f"remove existing directory {self.project_path}"):
            return
        await remove_directory(self.project_path)
        self.sink.success("Existing directory removed")

    # -- 3. Clone ----------------------------------------------------------

    async def _clone(self) -> None:
        repo = self.settings.template_repo
        if self._announce(f"clone template from {repo} to {self.project_path}"):
            return

        # Only roll back what the clone itself created.
        existed = self.project_path.exists() or self.project_path.is_symlink()

        result = await self.runner(
            ["git", "clone", "--depth", "1", repo, str(self.project_path)],
            timeout=self.settings.clone_timeout,
        )
        if not result.ok:
            self.sink.failure("Clone failed")
            if not existed:
                await remove_directory(self.project_path)
            kind = ErrorKind.TIMEOUT if result.timed_out else ErrorKind.CLONE_FAILED
            raise ScaffoldError(kind, f"Failed to clone template: {result.stderr}")
        self.sink.success("Template cloned")

    # -- 4. VCS metadata ---------------------------------------------------

    async def _remove_vcs_metadata(self) -> None:
        if self._announce("remove .git directory"):
            return
        await remove_directory(self.project_path / ".git")
        self.sink.success("Cleanup complete")

    # -- 5. Component pruning ----------------------------------------------

    async def _prune_components(self) -> None:
        for component in self.options.excluded_components():
            if self._announce(f"remove component {component.path}"):
                continue
            # Absent directories were never shipped or are already gone.
            component_dir = self.project_path / component.path
            if directory_exists(component_dir):
                await remove_directory(component_dir)
                self.sink.success(f"Removed {component.path}")
            else:
                self.sink.success(f"{component.path} not present")

    # -- 6. Variable substitution ------------------------------------------

    async def _substitute_variables(self, variables: TemplateVariables) -> None:
        description = (
            "replace template variables "
            f"(projectName={variables.project_name}, author={variables.author}, "
            f"license={variables.license}, year={variables.year})"
        )
        if self._announce(description):
            return

        origin = self.settings.template_origin
        try:
            files = await asyncio.to_thread(collect_template_files, self.project_path)
        except OSError as exc:
            self._warn(f"Warning: Failed to scan template files: {exc}")
            return

        changed = 0
        for path in files:
            try:
                if await asyncio.to_thread(process_template_file, path, variables, origin):
                    changed += 1
            except (OSError, UnicodeError) as exc:
                relative = path.relative_to(self.project_path).as_posix()
                self._warn(f"Warning: Failed to process {relative}: {exc}")
        self.sink.success(f"Template variables processed ({changed} file(s) updated)")

    # -- 7. Module injection -----------------------------------------------

    async def _inject_modules(self, variables: TemplateVariables) -> None:
        context = build_context(variables)
        for component in self.options.included_components():
            if not component.injected:
                continue
            if self._announce(f"add {component.label} module at {component.path}"):
                continue
            try:
                written = await self.injector.inject(component.key, self.project_path, context)
            except (ModuleInjectionError, TemplateError, OSError) as exc:
                self._warn(f"Warning: Failed to add {component.label} module: {exc}")
                continue
            self.sink.success(f"{component.label} module added ({len(written)} file(s))")

    # -- 8. VCS init -------------------------------------------------------

    async def _init_vcs(self) -> None:
        if self.options.skip_vcs_init:
            return
        if self._announce("initialize git repository"):
            return

        result = await self.runner(["git", "init"], cwd=self.project_path)
        if not result.ok:
            self._warn(
                f"Warning: Failed to initialize git: {result.stderr}",
                'You can manually run "git init" in the project directory.',
            )
            return
        self.sink.success("Git repository initialized")

    # -- 9. Dependency install ---------------------------------------------

    async def _install_dependencies(self) -> None:
        if self.options.skip_install:
            return

        cmd = INSTALL_COMMANDS[self.options.package_manager]
        cmd_str = " ".join(cmd)
        if self._announce(f"run: {cmd_str}"):
            return

        timeout = self.settings.install_timeout
        result = await self.runner(cmd, cwd=self.project_path, timeout=timeout)
        if not result.ok:
            if result.timed_out:
                message = f"Warning: Dependency installation timed out after {timeout}s"
            else:
                message = f"Warning: Failed to install dependencies: {result.stderr}"
            self._warn(message, f'You can manually run "{cmd_str}" in the project directory.')
            return
        self.sink.success("Dependencies installed")
