"""Injection of bundled optional modules.

Modules that the template repository does not ship (for example the RAG
add-on) are described declaratively: each lives in its own directory under
``cas/scaffolder/templates/<module>/`` with a ``manifest.yaml`` listing the
Jinja2 templates to render and where their output goes.  Adding a module
only needs a new asset directory and a matching ``Component`` entry.

Manifest format::

    name: rag
    description: Vector search with Qdrant
    assets:
      - template: packages/rag/package.json.j2
        destination: packages/rag/package.json
      - template: env.example.j2
        destination: .env.example
        mode: append
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from .substitution import TemplateVariables
from .templates import TemplateRenderer

MANIFEST_NAME = "manifest.yaml"


class ModuleInjectionError(Exception):
    """Raised when a module's asset bundle is missing or malformed."""

    def __init__(self, module: str, message: str) -> None:
        self.module = module
        super().__init__(f"Module '{module}': {message}")


class ModuleAsset(BaseModel):
    """One rendered file of a module."""

    template: str = Field(..., description="Template path relative to the module directory")
    destination: str = Field(..., description="Output path relative to the project root")
    mode: Literal["write", "append"] = Field(default="write")


class ModuleManifest(BaseModel):
    """Parsed ``manifest.yaml`` of a module asset bundle."""

    name: str
    description: str = ""
    assets: list[ModuleAsset] = Field(default_factory=list)


def build_context(variables: TemplateVariables) -> dict[str, Any]:
    """Build the Jinja2 context shared by every module template."""
    return {
        "project_name": variables.project_name,
        "author": variables.author,
        "license": variables.license,
        "year": variables.year,
        "package_scope": f"@{variables.project_name}",
    }


class ModuleInjector:
    """Renders module asset bundles into a project directory."""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    @property
    def template_dir(self) -> Path:
        return self.renderer.template_dir

    def load_manifest(self, module: str) -> ModuleManifest:
        """Read and validate the manifest of *module*."""
        manifest_path = self.template_dir / module / MANIFEST_NAME
        if not manifest_path.is_file():
            raise ModuleInjectionError(module, f"no {MANIFEST_NAME} in {manifest_path.parent}")

        try:
            raw = yaml.safe_load(manifest_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ModuleInjectionError(module, f"invalid manifest: {exc}") from exc

        if not isinstance(raw, dict):
            raise ModuleInjectionError(module, "manifest must be a mapping")
        raw.setdefault("name", module)

        try:
            return ModuleManifest.model_validate(raw)
        except ValidationError as exc:
            raise ModuleInjectionError(module, f"invalid manifest: {exc}") from exc

    async def inject(
        self,
        module: str,
        project_root: Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Render every asset of *module* into *project_root*.

        ``write`` assets create (or replace) their destination; ``append``
        assets are added to the end of an existing file, creating it if
        needed.

        Returns:
            Paths that were written or changed.
        """
        manifest = self.load_manifest(module)
        changed: list[Path] = []

        for asset in manifest.assets:
            template_key = f"{module}/{asset.template}"
            destination = project_root / asset.destination

            if asset.mode == "append":
                if await self.renderer.append_to_file(template_key, destination, context):
                    changed.append(destination)
            else:
                changed.append(
                    await self.renderer.render_to_file(template_key, destination, context)
                )

        return changed
