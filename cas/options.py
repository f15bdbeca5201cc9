"""Option resolution.

Turns the raw command-line flags into a ``PartialOptions`` model, applying
the ``all`` / ``minimal`` presets, and decides whether the interactive
collector has to fill in the gaps before scaffolding can start.  Everything
here is pure: no I/O happens until a complete ``ScaffoldOptions`` exists.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from cas.config import COMPONENT_FLAGS, License, PackageManager, ScaffoldOptions

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(Exception):
    """Raised when the command-line options cannot form a valid configuration."""


class ConflictingPresetsError(ConfigurationError):
    """Raised when the ``all`` and ``minimal`` presets are combined."""

    def __init__(self) -> None:
        super().__init__("Cannot use both --all and --minimal flags together")


# ---------------------------------------------------------------------------
# Enum parsing
# ---------------------------------------------------------------------------


def parse_license(value: str) -> License:
    """Convert *value* to a ``License`` or raise ``ConfigurationError``."""
    try:
        return License(value)
    except ValueError:
        choices = ", ".join(item.value for item in License)
        raise ConfigurationError(f"Invalid license. Must be one of: {choices}") from None


def parse_package_manager(value: str) -> PackageManager:
    """Convert *value* to a ``PackageManager`` or raise ``ConfigurationError``."""
    try:
        return PackageManager(value)
    except ValueError:
        choices = ", ".join(item.value for item in PackageManager)
        raise ConfigurationError(
            f"Invalid package manager. Must be one of: {choices}"
        ) from None


# ---------------------------------------------------------------------------
# Partial configuration
# ---------------------------------------------------------------------------


class PartialOptions(BaseModel):
    """Options gathered from the command line before any interactive step.

    Fields left as ``None`` were not supplied by the user.
    """

    project_name: str | None = None
    target_directory: str | None = None
    author: str | None = None
    license: License | None = None

    include_api: bool = False
    include_worker: bool = False
    include_evals: bool = False
    include_config: bool = False
    include_rag: bool = False

    use_all_preset: bool = False
    use_minimal_preset: bool = False
    force_overwrite: bool = False
    skip_install: bool = False
    skip_vcs_init: bool = False
    package_manager: PackageManager | None = None
    dry_run: bool = False

    @property
    def has_component_decision(self) -> bool:
        """``True`` when a preset or any individual component flag was given."""
        return (
            self.use_all_preset
            or self.use_minimal_preset
            or any(getattr(self, flag) for flag in COMPONENT_FLAGS)
        )

    def to_options(self, **overrides: Any) -> ScaffoldOptions:
        """Fill in non-interactive defaults and build ``ScaffoldOptions``.

        Raises:
            ConfigurationError: If no project name is available.
            pydantic.ValidationError: If the project name is invalid.
        """
        data = self.model_dump()
        data.update(overrides)
        if not data.get("project_name"):
            raise ConfigurationError("Project name is required")
        if data.get("author") is None:
            data["author"] = ""
        if data.get("license") is None:
            data["license"] = License.MIT
        if data.get("package_manager") is None:
            data["package_manager"] = PackageManager.BUN
        if not data.get("target_directory"):
            data["target_directory"] = data["project_name"]
        return ScaffoldOptions(**data)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

# Command-line destination -> PartialOptions field.
_FLAG_FIELDS: dict[str, str] = {
    "with_api": "include_api",
    "with_worker": "include_worker",
    "with_evals": "include_evals",
    "with_config": "include_config",
    "with_rag": "include_rag",
}


def resolve_options(project_name: str | None, flags: Mapping[str, Any]) -> PartialOptions:
    """Merge the positional project name and flag values into ``PartialOptions``.

    *flags* uses the argparse destination names (``with_api``, ``all``,
    ``minimal``, ``force``, ``no_install``, ``no_git``, ``package_manager``,
    ``dry_run``, ``dir``, ``author``, ``license``).  A preset overrides every
    individual component flag.

    Raises:
        ConflictingPresetsError: If both presets are set.
        ConfigurationError: If the license or package manager is not recognised.
    """
    use_all = bool(flags.get("all"))
    use_minimal = bool(flags.get("minimal"))
    if use_all and use_minimal:
        raise ConflictingPresetsError()

    components = {field: bool(flags.get(flag)) for flag, field in _FLAG_FIELDS.items()}
    if use_all or use_minimal:
        components = {field: use_all for field in components}

    license_value = flags.get("license")
    package_manager = flags.get("package_manager")

    partial = PartialOptions(
        **components,
        use_all_preset=use_all,
        use_minimal_preset=use_minimal,
        force_overwrite=bool(flags.get("force")),
        skip_install=bool(flags.get("no_install")),
        skip_vcs_init=bool(flags.get("no_git")),
        dry_run=bool(flags.get("dry_run")),
        author=flags.get("author") or None,
        license=parse_license(license_value) if license_value else None,
        package_manager=parse_package_manager(package_manager) if package_manager else None,
    )

    if project_name:
        partial.project_name = project_name
        partial.target_directory = flags.get("dir") or project_name
    elif flags.get("dir"):
        partial.target_directory = flags["dir"]

    return partial


def needs_interactive_mode(partial: PartialOptions) -> bool:
    """Return ``True`` when the interactive collector must run.

    That is the case when the project name is missing, or when neither a
    preset nor any individual component flag was supplied.
    """
    if not partial.project_name:
        return True
    return not partial.has_component_decision
