"""Command-line entry point.

Usage::

    cas my-app --with-api --with-worker
    cas init my-app --all --no-install
    cas create my-app --minimal --dry-run
    python -m cas
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from cas import __version__
from cas.config import License, PackageManager, ScaffoldOptions, Settings
from cas.options import (
    ConfigurationError,
    needs_interactive_mode,
    parse_license,
    parse_package_manager,
    resolve_options,
)
from cas.presentation import (
    print_banner,
    print_dry_run_summary,
    print_failure_message,
    print_package_manager_warning,
    print_success_message,
    print_update_notice,
)
from cas.prompts import PromptCancelled, run_interactive_prompts
from cas.scaffolder import Scaffolder
from cas.utils import check_for_updates, console, get_git_user_name, print_error

# Words accepted as the (optional) default subcommand.
COMMAND_ALIASES = ("init", "create")

# Seconds the pending update check may still take once scaffolding is done.
UPDATE_CHECK_GRACE = 1.0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _license_type(value: str) -> License:
    try:
        return parse_license(value)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def _package_manager_type(value: str) -> PackageManager:
    try:
        return parse_package_manager(value)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cas",
        description="CLI scaffolding tool for the Composable AI Stack",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  cas my-app --with-api --with-worker\n"
            "  cas init my-app --all --no-install\n"
            "  cas create my-app --minimal --dry-run\n"
        ),
    )
    parser.add_argument("project_name", nargs="?", default=None, help="Name of the project")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-d", "--dir", default=None, help="Target directory (defaults to project name)")
    parser.add_argument("-a", "--author", default=None, help="Author name for package.json")
    parser.add_argument(
        "-l", "--license",
        type=_license_type,
        default=None,
        help=f"License type ({', '.join(item.value for item in License)})",
    )

    components = parser.add_argument_group("components")
    components.add_argument("--with-api", action="store_true", help="Include API service")
    components.add_argument("--with-worker", action="store_true", help="Include background worker")
    components.add_argument("--with-evals", action="store_true", help="Include AI evaluation package")
    components.add_argument("--with-config", action="store_true", help="Include shared config package")
    components.add_argument("--with-rag", action="store_true", help="Include RAG package (Qdrant)")
    components.add_argument("--all", action="store_true", help="Include all optional components")
    components.add_argument("--minimal", action="store_true", help="Exclude all optional components")

    parser.add_argument("-f", "--force", action="store_true", help="Overwrite existing directory")
    parser.add_argument("--no-install", action="store_true", help="Skip dependency installation")
    parser.add_argument("--no-git", action="store_true", help="Skip git initialization")
    parser.add_argument(
        "-p", "--package-manager",
        type=_package_manager_type,
        default=None,
        help="Package manager to use (bun, npm, yarn, pnpm; default: bun)",
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Show what would happen without making changes"
    )
    return parser


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    """Parse *argv*, accepting an optional leading ``init``/``create`` word."""
    args = list(argv)
    if args and args[0] in COMMAND_ALIASES:
        args = args[1:]
    return build_parser().parse_args(args)


# ---------------------------------------------------------------------------
# Main flow
# ---------------------------------------------------------------------------


async def _collect_options(args: argparse.Namespace) -> ScaffoldOptions:
    partial = resolve_options(args.project_name, vars(args))
    if needs_interactive_mode(partial):
        default_author = await get_git_user_name()
        return run_interactive_prompts(partial, default_author=default_author)
    return partial.to_options()


async def _finish_update_check(task: asyncio.Task[str | None] | None) -> None:
    if task is None:
        return
    done, _ = await asyncio.wait({task}, timeout=UPDATE_CHECK_GRACE)
    if not done:
        task.cancel()
        return
    if task.exception() is not None:
        return
    latest = task.result()
    if latest:
        print_update_notice(__version__, latest)


async def run(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    """Run the CLI and return the process exit code."""
    settings = settings or Settings.from_env()
    args = parse_args(sys.argv[1:] if argv is None else argv)

    print_banner(__version__)

    update_task: asyncio.Task[str | None] | None = None
    if settings.update_check:
        update_task = asyncio.create_task(
            check_for_updates(
                __version__,
                settings.package_index_url,
                timeout=settings.update_check_timeout,
            )
        )

    try:
        try:
            options = await _collect_options(args)
        except ConfigurationError as exc:
            print_error(f"Error: {exc}")
            return 1
        except ValidationError as exc:
            messages = "; ".join(error["msg"].removeprefix("Value error, ") for error in exc.errors())
            print_error(f"Error: {messages}")
            return 1
        except PromptCancelled as exc:
            console.print(f"[dim]{exc}[/dim]")
            return 0

        print_package_manager_warning(options)
        if options.dry_run:
            print_dry_run_summary(options)

        result = await Scaffolder(options, settings).scaffold()

        if not result.success:
            print_failure_message(result.messages)
            return 1

        print_success_message(options, result)
        await _finish_update_check(update_task)
        update_task = None
        return 0
    finally:
        if update_task is not None and not update_task.done():
            update_task.cancel()


def main() -> None:
    """Console-script entry point for ``cas``."""
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
