"""Shared utility functions for cas.

Provides async command execution, project-name validation, directory
helpers, the network reachability check, the release update check, and
Rich-based console output.  Command execution never raises for a failing
child process; callers inspect the returned ``CommandResult`` instead.
"""

from __future__ import annotations

import asyncio
import os
import re
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx
from pydantic import BaseModel, Field
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


class CommandResult(BaseModel):
    """Outcome of an external command."""

    returncode: int = Field(default=0)
    stdout: str = Field(default="")
    stderr: str = Field(default="")
    timed_out: bool = Field(default=False, description="The process was killed at its deadline")

    @property
    def ok(self) -> bool:
        return self.returncode == 0


CommandRunner = Callable[..., Awaitable[CommandResult]]


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: float = 120,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command asynchronously.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``CommandResult``.  A process that cannot be started at all (missing
        binary, bad working directory) yields ``returncode=1`` with the OS
        error in ``stderr``; a process killed at the deadline yields
        ``returncode=-1`` and ``timed_out=True``.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None
    cmd_str = cmd if isinstance(cmd, str) else " ".join(cmd)

    try:
        if isinstance(cmd, list):
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=stdout_pipe,
                stderr=stderr_pipe,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
        else:
            process = await asyncio.create_subprocess_shell(
                cmd,
                stdout=stdout_pipe,
                stderr=stderr_pipe,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
    except OSError as exc:
        return CommandResult(returncode=1, stderr=f"Failed to run {cmd_str}: {exc}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return CommandResult(
            returncode=-1,
            stderr=f"Command timed out after {timeout}s: {cmd_str}",
            timed_out=True,
        )

    return CommandResult(
        returncode=process.returncode or 0,
        stdout=(stdout_bytes or b"").decode("utf-8", errors="replace").strip(),
        stderr=(stderr_bytes or b"").decode("utf-8", errors="replace").strip(),
    )


# ---------------------------------------------------------------------------
# Project name helpers
# ---------------------------------------------------------------------------

MAX_PROJECT_NAME_LENGTH = 214

_PROJECT_NAME_RE = re.compile(r"^[a-z][a-z0-9_-]*$")


class ValidationResult(BaseModel):
    """Outcome of ``validate_project_name``."""

    valid: bool
    message: str | None = None


def validate_project_name(name: str) -> ValidationResult:
    """Check *name* against the package naming rules.

    A valid name starts with a lowercase ASCII letter followed by lowercase
    letters, digits, hyphens, or underscores, and is at most 214 characters.
    """
    if not name:
        return ValidationResult(valid=False, message="Project name is required")

    if len(name) > MAX_PROJECT_NAME_LENGTH:
        return ValidationResult(
            valid=False,
            message=f"Project name must be {MAX_PROJECT_NAME_LENGTH} characters or less",
        )

    if not _PROJECT_NAME_RE.match(name):
        return ValidationResult(
            valid=False,
            message=(
                "Project name must start with a lowercase letter and contain only "
                "lowercase letters, numbers, hyphens, and underscores"
            ),
        )

    return ValidationResult(valid=True)


def slugify(text: str) -> str:
    """Convert arbitrary text to a valid project name.

    * Lowercases the input.
    * Replaces every character outside ``[a-z0-9_-]`` with a hyphen.
    * Drops everything before the first letter.
    * Collapses consecutive hyphens and strips a trailing hyphen.

    Examples::

        slugify("My Cool Project! 123") -> "my-cool-project-123"
        slugify("123-project") -> "project"
    """
    result = re.sub(r"[^a-z0-9_-]", "-", text.lower())
    result = re.sub(r"^[^a-z]+", "", result)
    result = re.sub(r"-+", "-", result)
    return re.sub(r"-$", "", result)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def directory_exists(path: str | Path) -> bool:
    """Return ``True`` only if *path* exists and is a directory."""
    try:
        return Path(path).is_dir()
    except OSError:
        return False


async def remove_directory(path: str | Path) -> None:
    """Recursively remove *path*.

    Removing a path that does not exist is a no-op.  A file or symlink at
    *path* is unlinked rather than followed.
    """
    target = Path(path)

    def _remove() -> None:
        if target.is_symlink() or target.is_file():
            target.unlink(missing_ok=True)
        elif target.is_dir():
            shutil.rmtree(target)

    await asyncio.to_thread(_remove)


# ---------------------------------------------------------------------------
# Git helpers
# ---------------------------------------------------------------------------


async def is_online(
    repo_url: str,
    timeout: float = 10,
    runner: CommandRunner = run_command,
) -> bool:
    """Check whether the template host is reachable.

    Runs ``git ls-remote <repo_url> HEAD``; any non-zero exit (including a
    timeout) counts as unreachable.
    """
    try:
        result = await runner(["git", "ls-remote", repo_url, "HEAD"], timeout=timeout)
    except OSError:
        return False
    return result.ok


async def get_git_user_name(runner: CommandRunner = run_command) -> str:
    """Return ``git config --global user.name`` or an empty string."""
    result = await runner(["git", "config", "--global", "user.name"], timeout=10)
    if not result.ok:
        return ""
    return result.stdout.strip()


# ---------------------------------------------------------------------------
# Update check
# ---------------------------------------------------------------------------


async def check_for_updates(
    current_version: str,
    index_url: str,
    timeout: float = 5.0,
) -> str | None:
    """Return the latest published version if it differs from *current_version*.

    Queries the package index JSON API.  Any network or payload problem
    yields ``None``; the check is purely advisory.
    """
    try:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=3.0)) as client:
            response = await client.get(index_url)
            if response.status_code != 200:
                return None
            latest = response.json().get("info", {}).get("version", "")
    except (httpx.HTTPError, ValueError, AttributeError):
        return None

    latest = str(latest).strip()
    if latest and latest != current_version:
        return latest
    return None


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
