"""Placeholder substitution for cloned template files.

The template repository marks project metadata with a small whitelist of
literal tokens (``{{projectName}}``, ``{{author}}``, ``{{license}}``,
``{{year}}``) and refers to itself by its origin name.  Substitution is a
single regex pass over the original text: replacement values are never
re-scanned, so metadata that happens to contain a token cannot cascade into
further replacements.  Unknown ``{{...}}`` tokens are left untouched.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from cas.config import TEMPLATE_ORIGIN_NAME, ScaffoldOptions

# Files that carry template tokens, relative to the project root.
TEMPLATE_FILES: tuple[str, ...] = (
    "package.json",
    "README.md",
    "apps/web/package.json",
    "apps/api/package.json",
    "apps/worker/package.json",
    "apps/convex/package.json",
    "packages/ai/package.json",
    "packages/config/package.json",
    "packages/evals/package.json",
    "packages/prompts/package.json",
    "packages/schemas/package.json",
    "packages/shared/package.json",
)

# Workspace groupings whose direct children may hold a package.json.
WORKSPACE_DIRS: tuple[str, ...] = ("apps", "packages")


class TemplateVariables(BaseModel):
    """Values substituted into the cloned template."""

    model_config = ConfigDict(frozen=True)

    project_name: str
    author: str = ""
    license: str = "MIT"
    year: str

    @classmethod
    def from_options(cls, options: ScaffoldOptions, now: datetime | None = None) -> "TemplateVariables":
        """Derive the variables for a run; ``year`` is the current calendar year."""
        moment = now or datetime.now()
        return cls(
            project_name=options.project_name,
            author=options.author,
            license=options.license.value,
            year=str(moment.year),
        )

    def placeholders(self) -> dict[str, str]:
        """Return the whitelisted ``token -> value`` mapping."""
        return {
            "{{projectName}}": self.project_name,
            "{{author}}": self.author,
            "{{license}}": self.license,
            "{{year}}": self.year,
        }


def substitute(
    content: str,
    variables: TemplateVariables,
    origin_name: str = TEMPLATE_ORIGIN_NAME,
) -> str:
    """Replace every whitelisted placeholder and the origin name in *content*."""
    replacements = variables.placeholders()
    if origin_name:
        replacements[origin_name] = variables.project_name

    # Longest token first so overlapping alternatives prefer the full match.
    tokens = sorted(replacements, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(token) for token in tokens))
    return pattern.sub(lambda match: replacements[match.group(0)], content)


def process_template_file(
    path: Path,
    variables: TemplateVariables,
    origin_name: str = TEMPLATE_ORIGIN_NAME,
) -> bool:
    """Substitute placeholders in *path* in place.

    The file is only rewritten when its content changes.  A missing file is
    skipped: it was most likely pruned together with its component.  A file
    that is not valid UTF-8 is left as is.

    Returns:
        ``True`` if the file was rewritten.

    Raises:
        OSError: If the path cannot be read or written (e.g. it is a directory).
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (FileNotFoundError, UnicodeDecodeError):
        return False

    processed = substitute(content, variables, origin_name)
    if processed == content:
        return False
    path.write_text(processed, encoding="utf-8")
    return True


def collect_template_files(project_root: Path) -> list[Path]:
    """Return the files that should go through substitution.

    The fixed ``TEMPLATE_FILES`` list comes first, followed by any other
    ``package.json`` found directly inside a workspace directory that still
    exists after pruning.  Paths are de-duplicated in order.
    """
    candidates = [project_root / rel for rel in TEMPLATE_FILES]

    for workspace in WORKSPACE_DIRS:
        workspace_dir = project_root / workspace
        if not workspace_dir.is_dir():
            continue
        for entry in sorted(workspace_dir.iterdir()):
            if entry.is_dir():
                candidates.append(entry / "package.json")

    seen: set[Path] = set()
    files: list[Path] = []
    for path in candidates:
        if path not in seen:
            seen.add(path)
            files.append(path)
    return files
