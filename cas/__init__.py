"""cas -- scaffolding CLI for the Composable AI Stack.

Clones the template monorepo, prunes unselected optional components,
substitutes project metadata, injects bundled add-on modules, and optionally
initialises git and installs dependencies.

Quick usage::

    from cas import ScaffoldOptions, Scaffolder

    options = ScaffoldOptions(project_name="my-app", include_api=True)
    result = await Scaffolder(options).scaffold()
"""

__version__ = "0.1.0"

from cas.config import COMPONENTS, Component, License, PackageManager, ScaffoldOptions, Settings
from cas.options import (
    ConfigurationError,
    ConflictingPresetsError,
    PartialOptions,
    needs_interactive_mode,
    resolve_options,
)
from cas.scaffolder import ErrorKind, ScaffoldError, Scaffolder, ScaffoldResult
from cas.utils import is_online, slugify, validate_project_name

__all__ = [
    "COMPONENTS",
    "Component",
    "ConfigurationError",
    "ConflictingPresetsError",
    "ErrorKind",
    "License",
    "PackageManager",
    "PartialOptions",
    "ScaffoldError",
    "ScaffoldOptions",
    "ScaffoldResult",
    "Scaffolder",
    "Settings",
    "__version__",
    "is_online",
    "needs_interactive_mode",
    "resolve_options",
    "slugify",
    "validate_project_name",
]
