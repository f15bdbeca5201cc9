"""User-facing messages printed around a scaffolding run."""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel

from cas.config import COMPONENTS, PackageManager, ScaffoldOptions
from cas.scaffolder import ScaffoldResult
from cas.utils import console, print_summary_table, print_warning

ASCII_BANNER = r"""
  ____    _    ____
 / ___|  / \  / ___|
| |     / _ \ \___ \
| |___ / ___ \ ___) |
 \____/_/   \_\____/
"""


def print_banner(version: str) -> None:
    console.print(
        Panel(
            f"[bold cyan]{escape(ASCII_BANNER)}[/bold cyan]\n"
            f"[dim]Composable AI Stack CLI v{version}[/dim]",
            border_style="cyan",
            expand=False,
        )
    )


def print_package_manager_warning(options: ScaffoldOptions) -> None:
    """Warn when the generated stack is installed with something other than bun."""
    if options.package_manager is PackageManager.BUN:
        return
    console.print()
    print_warning(
        f"Warning: Using {options.package_manager.value} instead of bun. "
        "Some features may not work as expected."
    )
    console.print()


def print_dry_run_summary(options: ScaffoldOptions) -> None:
    """Show the resolved configuration before a dry run."""
    console.print()
    console.print("[cyan]Dry-run mode enabled. No changes will be made.[/cyan]")
    console.print()

    rows: dict[str, str] = {
        "Project name": options.project_name,
        "Directory": options.target_directory,
        "Author": options.author or "(not set)",
        "License": options.license.value,
    }
    for component in COMPONENTS:
        rows[component.label] = "yes" if options.includes(component) else "no"
    rows["Package manager"] = options.package_manager.value
    rows["Install dependencies"] = "no" if options.skip_install else "yes"
    rows["Initialize git"] = "no" if options.skip_vcs_init else "yes"
    rows["Force overwrite"] = "yes" if options.force_overwrite else "no"

    print_summary_table(rows, title="Configuration")


def print_success_message(options: ScaffoldOptions, result: ScaffoldResult) -> None:
    """Print the outro with next steps and the list of included components."""
    pm = options.package_manager.value

    console.print()
    console.print("[bold green]Project created successfully![/bold green]")
    console.print()
    console.print("[bold]Next steps:[/bold]")
    console.print()
    console.print(f"  [cyan]cd[/cyan] {escape(options.target_directory)}")
    if options.skip_install:
        console.print(f"  [cyan]{pm}[/cyan] install")
    console.print(f"  [cyan]{pm}[/cyan] dev")
    console.print()

    included = options.included_components()
    if included:
        console.print("[dim]Included components:[/dim]")
        for component in included:
            console.print(f"[dim]  - {escape(component.label)} ({component.path})[/dim]")
        console.print()

    print_warnings(result.warnings)
    console.print(
        "[yellow]Note: Run `npx convex dev` to initialize Convex after setting up your account.[/yellow]"
    )
    console.print()


def print_failure_message(messages: list[str]) -> None:
    console.print()
    console.print("[bold red]Project creation failed[/bold red]")
    console.print()
    for message in messages or ["Unknown error occurred"]:
        console.print(f"[red]  {escape(message)}[/red]")
    console.print()


def print_warnings(warnings: list[str]) -> None:
    for warning in warnings:
        print_warning(f"  {warning}")
    if warnings:
        console.print()


def print_update_notice(current: str, latest: str) -> None:
    console.print(
        Panel(
            f"Update available: [dim]{current}[/dim] -> [green]{latest}[/green]\n"
            "Run [cyan]pip install -U cas-cli[/cyan] to update",
            border_style="yellow",
            expand=False,
        )
    )
