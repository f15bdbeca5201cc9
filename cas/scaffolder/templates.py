"""Jinja2 template rendering for bundled module assets.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``cas/scaffolder/templates/`` directory and renders them with the project's
metadata.  Supports rendering to a string, writing a fresh file, and
appending a snippet to an existing file.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for optional module assets.

    Template paths are relative to the template root, e.g.
    ``"rag/packages/rag/package.json.j2"``.  Undefined variables raise
    instead of rendering as empty strings.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["snake_case"] = _snake_case_filter

    # -- Rendering ---------------------------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.  Returns the output
        path.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(_write_file, out, content)
        return out

    async def append_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> bool:
        """Render a template and append it to *output_path*.

        The file is created if missing.  Existing content is never replaced,
        and a snippet that is already present is not appended again.

        Returns:
            ``True`` if the file changed.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        return await asyncio.to_thread(_append_file, out, content)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _append_file(path: Path, content: str) -> bool:
    """Synchronous helper: append *content* unless it is already present."""
    path.parent.mkdir(parents=True, exist_ok=True)
    existing = path.read_text(encoding="utf-8") if path.exists() else ""
    if content.strip() and content.strip() in existing:
        return False

    separator = ""
    if existing and not existing.endswith("\n"):
        separator = "\n"
    if existing:
        separator += "\n"
    with path.open("a", encoding="utf-8") as handle:
        handle.write(separator + content)
    return True
