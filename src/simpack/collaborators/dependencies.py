"""
Dependency manifest capture via git.

For every repository participating in a build, records the checked-out
commit and branch:

    {
      "example-sim": {"sha": "4f0c...", "branch": "main"},
      "scenery": {"sha": "9a1e...", "branch": "main"}
    }

Repositories are visited in sorted order so the manifest is deterministic.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Sequence

from ..config import SimpackConfig
from ..output import log_warning
from ..subprocess_utils import run_tool

logger = logging.getLogger(__name__)


def get_git_revision(repo_dir: Path) -> Dict[str, str]:
    """Return {"sha", "branch"} for a git checkout.

    Raises:
        ToolInvocationError: If git fails (e.g. the directory is not a repository)
    """
    sha = run_tool(["git", "rev-parse", "HEAD"], cwd=repo_dir).strip()
    branch = run_tool(["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=repo_dir).strip()
    return {"sha": sha, "branch": branch}


class GitDependencyResolver:
    """Resolves the dependency manifest by asking git in each sibling checkout."""

    def __init__(self, config: SimpackConfig):
        self.root = config.root

    async def resolve(self, repo: str, libs: Sequence[str]) -> Dict[str, Any]:
        names = sorted(set(libs) | {repo})
        manifest: Dict[str, Any] = {}
        for name in names:
            repo_dir = self.root / name
            if not repo_dir.is_dir():
                log_warning(f"Dependency {name} is not checked out; omitting it from dependencies.json")
                continue
            manifest[name] = await asyncio.to_thread(get_git_revision, repo_dir)
            logger.debug("%s at %s (%s)", name, manifest[name]["sha"], manifest[name]["branch"])
        return manifest
