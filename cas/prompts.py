"""Interactive collection of missing options.

Asks only for what the command line did not supply, then returns a complete
``ScaffoldOptions``.  Uses ``rich.prompt`` on the shared console.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from cas.config import COMPONENTS, License, PackageManager, ScaffoldOptions
from cas.options import PartialOptions
from cas.utils import console as default_console
from cas.utils import slugify, validate_project_name

# Components pre-selected when the user is asked.
DEFAULT_COMPONENTS = frozenset({"api", "worker"})


class PromptCancelled(Exception):
    """Raised when the user aborts the interactive session."""


def ask_project_name(console: Console) -> str:
    """Ask until a valid project name is entered, suggesting a slug on error."""
    while True:
        value = Prompt.ask("What is your project name?", default="my-ai-app", console=console)
        value = value.strip()
        result = validate_project_name(value)
        if result.valid:
            return value
        suggested = slugify(value)
        if suggested and suggested != value:
            console.print(f"[red]{result.message}. Try: {suggested}[/red]")
        else:
            console.print(f"[red]{result.message}[/red]")


def ask_components(console: Console) -> set[str]:
    """Ask for each optional component with a yes/no question."""
    console.print("[bold]Select optional components to include[/bold]")
    selected: set[str] = set()
    for component in COMPONENTS:
        question = f"  {component.label} [dim]({component.path} - {component.hint})[/dim]"
        if Confirm.ask(question, default=component.key in DEFAULT_COMPONENTS, console=console):
            selected.add(component.key)
    return selected


def run_interactive_prompts(
    partial: PartialOptions,
    default_author: str = "",
    console: Console | None = None,
) -> ScaffoldOptions:
    """Fill in everything *partial* lacks by asking the user.

    Raises:
        PromptCancelled: On Ctrl-C or end of input.
    """
    console = console or default_console
    console.print(Panel("[bold black on cyan] Composable AI Stack [/]", expand=False))

    try:
        project_name = partial.project_name or ask_project_name(console)

        author = partial.author
        if author is None:
            author = Prompt.ask("Author name", default=default_author, console=console)

        license_value = partial.license
        if license_value is None:
            license_value = License(
                Prompt.ask(
                    "Select a license",
                    choices=[item.value for item in License],
                    default=License.MIT.value,
                    console=console,
                )
            )

        if partial.use_all_preset or partial.use_minimal_preset:
            components = {c.key for c in COMPONENTS} if partial.use_all_preset else set()
        elif partial.has_component_decision:
            components = {c.key for c in COMPONENTS if getattr(partial, c.option_field)}
        else:
            components = ask_components(console)

        package_manager = partial.package_manager
        if package_manager is None:
            package_manager = PackageManager(
                Prompt.ask(
                    "Select a package manager",
                    choices=[item.value for item in PackageManager],
                    default=PackageManager.BUN.value,
                    console=console,
                )
            )
    except (KeyboardInterrupt, EOFError):
        raise PromptCancelled("Operation cancelled.") from None

    component_flags = {c.option_field: c.key in components for c in COMPONENTS}
    return partial.to_options(
        project_name=project_name,
        target_directory=partial.target_directory or project_name,
        author=author or "",
        license=license_value,
        package_manager=package_manager,
        **component_flags,
    )
