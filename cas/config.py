"""cas configuration.

Typed configuration for a scaffolding run. The per-invocation options are an
immutable Pydantic v2 model validated at construction time; runtime settings
(template source, timeouts, update check) can be overridden from environment
variables without touching the CLI surface.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cas.utils import validate_project_name

# ---------------------------------------------------------------------------
# Template source
# ---------------------------------------------------------------------------

TEMPLATE_REPO = "https://github.com/yabasha/composable-ai-stack.git"
TEMPLATE_ORIGIN_NAME = "composable-ai-stack"
PACKAGE_INDEX_URL = "https://pypi.org/pypi/cas-cli/json"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class License(str, Enum):
    """License identifiers accepted for the generated project."""
    MIT = "MIT"
    APACHE_2_0 = "Apache-2.0"
    ISC = "ISC"
    GPL_3_0 = "GPL-3.0"
    BSD_3_CLAUSE = "BSD-3-Clause"
    UNLICENSED = "UNLICENSED"


class PackageManager(str, Enum):
    """JavaScript package managers the generated monorepo can be installed with."""
    BUN = "bun"
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"


INSTALL_COMMANDS: dict[PackageManager, list[str]] = {
    PackageManager.BUN: ["bun", "install"],
    PackageManager.NPM: ["npm", "install"],
    PackageManager.YARN: ["yarn", "install"],
    PackageManager.PNPM: ["pnpm", "install"],
}


# ---------------------------------------------------------------------------
# Optional components
# ---------------------------------------------------------------------------

class Component(BaseModel):
    """An optional module of the generated monorepo.

    Components shipped by the template are pruned when deselected. Injected
    components are absent from the template and are rendered from the asset
    bundle of the same key under ``cas/scaffolder/templates/``.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Short identifier, e.g. 'api'")
    label: str = Field(..., description="Human-readable name")
    path: str = Field(..., description="Directory relative to the project root")
    hint: str = Field(default="", description="One-line description shown in prompts")
    injected: bool = Field(default=False, description="Rendered from bundled assets")

    @property
    def option_field(self) -> str:
        """Name of the ``ScaffoldOptions`` flag that toggles this component."""
        return f"include_{self.key}"


COMPONENTS: tuple[Component, ...] = (
    Component(key="api", label="API Service", path="apps/api",
              hint="Hono-based REST API"),
    Component(key="worker", label="Background Worker", path="apps/worker",
              hint="Background job processor"),
    Component(key="evals", label="AI Evaluations", path="packages/evals",
              hint="AI model evaluation framework"),
    Component(key="config", label="Shared Config", path="packages/config",
              hint="Shared configuration utilities"),
    Component(key="rag", label="RAG (Qdrant)", path="packages/rag",
              hint="Vector search with Qdrant + Vercel AI SDK embeddings",
              injected=True),
)

COMPONENT_FLAGS: tuple[str, ...] = tuple(c.option_field for c in COMPONENTS)


# ---------------------------------------------------------------------------
# Per-invocation options
# ---------------------------------------------------------------------------

class ScaffoldOptions(BaseModel):
    """The normalised, immutable input to a scaffolding run."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., description="Package name of the new project")
    target_directory: str = Field(default="", description="Defaults to project_name")
    author: str = Field(default="")
    license: License = Field(default=License.MIT)

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
    package_manager: PackageManager = Field(default=PackageManager.BUN)
    dry_run: bool = False

    @field_validator("project_name")
    @classmethod
    def _check_project_name(cls, value: str) -> str:
        result = validate_project_name(value)
        if not result.valid:
            raise ValueError(result.message)
        return value

    @model_validator(mode="before")
    @classmethod
    def _apply_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("target_directory"):
            data["target_directory"] = data.get("project_name", "")
        if data.get("use_all_preset") and data.get("use_minimal_preset"):
            raise ValueError("Cannot use both --all and --minimal flags together")
        # A preset overrides the individual component flags.
        if data.get("use_all_preset") or data.get("use_minimal_preset"):
            value = bool(data.get("use_all_preset"))
            for flag in COMPONENT_FLAGS:
                data[flag] = value
        return data

    def includes(self, component: Component) -> bool:
        """Return ``True`` if *component* is selected for this run."""
        return bool(getattr(self, component.option_field))

    def included_components(self) -> list[Component]:
        return [c for c in COMPONENTS if self.includes(c)]

    def excluded_components(self) -> list[Component]:
        return [c for c in COMPONENTS if not self.includes(c)]


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------

class Settings(BaseModel):
    """Runtime knobs that are not part of the command-line surface."""

    template_repo: str = Field(default=TEMPLATE_REPO)
    template_origin: str = Field(
        default=TEMPLATE_ORIGIN_NAME,
        description="Literal name in the template that is replaced by the project name",
    )
    network_timeout: int = Field(default=10, ge=1, description="Reachability check timeout in seconds")
    clone_timeout: int = Field(default=600, ge=10, description="git clone timeout in seconds")
    install_timeout: int = Field(default=300, ge=10, description="Dependency install timeout in seconds")
    update_check: bool = Field(default=True)
    update_check_timeout: float = Field(default=5.0, gt=0)
    package_index_url: str = Field(default=PACKAGE_INDEX_URL)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            CAS_TEMPLATE_REPO, CAS_TEMPLATE_ORIGIN, CAS_NETWORK_TIMEOUT,
            CAS_CLONE_TIMEOUT, CAS_INSTALL_TIMEOUT, CAS_UPDATE_CHECK,
            CAS_PACKAGE_INDEX_URL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CAS_TEMPLATE_REPO"):
            kwargs["template_repo"] = os.environ["CAS_TEMPLATE_REPO"]
        if os.environ.get("CAS_TEMPLATE_ORIGIN"):
            kwargs["template_origin"] = os.environ["CAS_TEMPLATE_ORIGIN"]
        if os.environ.get("CAS_NETWORK_TIMEOUT"):
            kwargs["network_timeout"] = int(os.environ["CAS_NETWORK_TIMEOUT"])
        if os.environ.get("CAS_CLONE_TIMEOUT"):
            kwargs["clone_timeout"] = int(os.environ["CAS_CLONE_TIMEOUT"])
        if os.environ.get("CAS_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["CAS_INSTALL_TIMEOUT"])
        if os.environ.get("CAS_UPDATE_CHECK"):
            kwargs["update_check"] = os.environ["CAS_UPDATE_CHECK"].strip().lower() not in (
                "0", "false", "no", "off",
            )
        if os.environ.get("CAS_PACKAGE_INDEX_URL"):
            kwargs["package_index_url"] = os.environ["CAS_PACKAGE_INDEX_URL"]
        return cls(**kwargs)
