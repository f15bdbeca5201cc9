"""Shared pytest fixtures for the cas test suite.

Provides reusable fixtures for:
- A recording output sink
- A fake template tree and a real local git template repository
- A fake command runner that simulates git and package managers
- Baseline scaffold options and settings
"""

from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Any

import pytest

from cas.config import ScaffoldOptions, Settings
from cas.utils import CommandResult

# ---------------------------------------------------------------------------
# Template tree
# ---------------------------------------------------------------------------

TEMPLATE_PACKAGES = {
    "apps/web": "web",
    "apps/api": "api",
    "apps/worker": "worker",
    "apps/convex": "convex",
    "packages/ai": "ai",
    "packages/config": "config",
    "packages/evals": "evals",
    "packages/prompts": "prompts",
    "packages/schemas": "schemas",
    "packages/shared": "shared",
}


def write_template_tree(root: Path) -> Path:
    """Write a miniature copy of the template monorepo into *root*."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "package.json").write_text(
        json.dumps(
            {
                "name": "composable-ai-stack",
                "author": "{{author}}",
                "license": "{{license}}",
                "workspaces": ["apps/*", "packages/*"],
            },
            indent=2,
        )
        + "\n",
        encoding="utf-8",
    )
    (root / "README.md").write_text(
        "# {{projectName}}\n\nCopyright (c) {{year}} {{author}}\n\n"
        "Built on composable-ai-stack. Keep {{unknownToken}} as is.\n",
        encoding="utf-8",
    )
    (root / ".env.example").write_text("OPENAI_API_KEY=\n", encoding="utf-8")
    for rel, short in TEMPLATE_PACKAGES.items():
        pkg_dir = root / rel
        (pkg_dir / "src").mkdir(parents=True, exist_ok=True)
        (pkg_dir / "package.json").write_text(
            json.dumps({"name": f"@composable-ai-stack/{short}", "version": "0.0.0"}, indent=2)
            + "\n",
            encoding="utf-8",
        )
        (pkg_dir / "src" / "index.ts").write_text(f"export const name = '{short}'\n", encoding="utf-8")
    return root


@pytest.fixture
def make_template_tree():
    """Return the template tree writer."""
    return write_template_tree


# ---------------------------------------------------------------------------
# Recording sink
# ---------------------------------------------------------------------------


class RecordingSink:
    """Output sink that stores ``(kind, message)`` events."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def action(self, message: str) -> None:
        self.events.append(("action", message))

    def success(self, message: str) -> None:
        self.events.append(("success", message))

    def failure(self, message: str) -> None:
        self.events.append(("failure", message))

    def warning(self, message: str) -> None:
        self.events.append(("warning", message))

    def dry_run(self, message: str) -> None:
        self.events.append(("dry_run", message))

    def info(self, message: str) -> None:
        self.events.append(("info", message))

    def messages(self, kind: str) -> list[str]:
        return [message for event_kind, message in self.events if event_kind == kind]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


# ---------------------------------------------------------------------------
# Fake command runner
# ---------------------------------------------------------------------------


class FakeRunner:
    """Async stand-in for ``run_command``.

    ``git clone`` writes the template tree into its destination; every other
    command succeeds unless a result is registered for its first two words
    in ``results``.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.results: dict[str, CommandResult] = {}

    async def __call__(self, cmd: list[str], **kwargs: Any) -> CommandResult:
        self.calls.append({"cmd": list(cmd), **kwargs})
        key = " ".join(cmd[:2])
        if key in self.results:
            return self.results[key]
        if key == "git clone":
            write_template_tree(Path(cmd[-1]))
            (Path(cmd[-1]) / ".git").mkdir(exist_ok=True)
        return CommandResult(returncode=0)

    def commands(self) -> list[str]:
        return [" ".join(call["cmd"]) for call in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


# ---------------------------------------------------------------------------
# Options & settings
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(template_repo="https://example.invalid/composable-ai-stack.git", update_check=False)


@pytest.fixture
def base_options() -> ScaffoldOptions:
    """All template components, no git, no install."""
    return ScaffoldOptions(
        project_name="test-project",
        author="Test Author",
        include_api=True,
        include_worker=True,
        include_evals=True,
        include_config=True,
        force_overwrite=True,
        skip_install=True,
        skip_vcs_init=True,
    )


# ---------------------------------------------------------------------------
# Real git template repository
# ---------------------------------------------------------------------------


def _git(*args: str, cwd: Path) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


@pytest.fixture
def template_repo(tmp_path: Path) -> Path:
    """A real git repository containing the miniature template, with one commit."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo_dir = write_template_tree(tmp_path / "composable-ai-stack")
    _git("init", cwd=repo_dir)
    _git("config", "user.email", "test@cas.local", cwd=repo_dir)
    _git("config", "user.name", "CAS Test", cwd=repo_dir)
    _git("config", "commit.gpgsign", "false", cwd=repo_dir)
    _git("add", ".", cwd=repo_dir)
    _git("commit", "-m", "Initial commit", cwd=repo_dir)
    yield repo_dir
