"""
Build configuration.

Centralized settings that are not part of a single build request: where the
workspace of sibling repositories lives and how Node tools are launched.

Environment variables:
- SIMPACK_ROOT: workspace root holding the target and sibling repositories
  (default: parent of the current directory, so builds run from inside a repo)
- SIMPACK_NPX: command used to launch Node tools (default: "npx"); may
  contain arguments, e.g. "npx --no-install"
"""

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

FALLBACK_LOCALE = "en"

# Sibling directory that must be checked out for the restricted brand
RESTRICTED_REPO = "phet-io"

# Repository holding translated string files
TRANSLATIONS_REPO = "babel"

A11Y_VIEW_HTML_SUFFIX = "_a11y_view.html"


def get_default_root() -> Path:
    """Return the workspace root from SIMPACK_ROOT or the parent of the cwd."""
    env_root = os.environ.get("SIMPACK_ROOT")
    if env_root:
        return Path(env_root)
    return Path.cwd().parent


def get_npx_command() -> tuple[str, ...]:
    """Return the Node tool launcher from SIMPACK_NPX (default: npx)."""
    return tuple(shlex.split(os.environ.get("SIMPACK_NPX", "npx")))


@dataclass(frozen=True)
class SimpackConfig:
    """Workspace-level settings shared by every build in a run.

    Attributes:
        root: Workspace root containing the target and sibling repositories
        npx: Command (and arguments) used to launch Node tools
        verbose: Whether to enable verbose output
    """

    root: Path
    npx: tuple[str, ...] = ("npx",)
    verbose: bool = False

    @classmethod
    def from_env(cls, root: Optional[Path] = None, verbose: bool = False) -> "SimpackConfig":
        """Create a config, filling unset values from the environment."""
        return cls(
            root=(root if root is not None else get_default_root()).resolve(),
            npx=get_npx_command(),
            verbose=verbose,
        )

    def repo_dir(self, repo: str) -> Path:
        return self.root / repo

    def build_dir(self, repo: str, brand: str) -> Path:
        """Brand-specific build directory, e.g. <root>/<repo>/build/phet."""
        return self.root / repo / "build" / brand
