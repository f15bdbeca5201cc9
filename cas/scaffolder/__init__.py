"""cas scaffolder -- turns the template repository into a new project.

Quick usage::

    from cas.config import ScaffoldOptions
    from cas.scaffolder import Scaffolder

    options = ScaffoldOptions(project_name="my-app", include_worker=True)
    result = await Scaffolder(options).scaffold()
    if not result.success:
        print(result.errors)
"""

from cas.scaffolder.generator import ErrorKind, ScaffoldError, Scaffolder, ScaffoldResult
from cas.scaffolder.modules import ModuleInjectionError, ModuleInjector
from cas.scaffolder.substitution import TemplateVariables, substitute
from cas.scaffolder.templates import TemplateRenderer

__all__ = [
    "ErrorKind",
    "ModuleInjectionError",
    "ModuleInjector",
    "ScaffoldError",
    "ScaffoldResult",
    "Scaffolder",
    "TemplateRenderer",
    "TemplateVariables",
    "substitute",
]
