"""
Supplemental files for restricted builds.

Copies <root>/phet-io/wrappers/ into <build_dir>/wrappers/, filling the
{{REPO}} and {{VERSION}} placeholders in text files so every wrapper points
at the runnable it ships with.
"""

import asyncio
import shutil
from pathlib import Path
from typing import List

from ..config import RESTRICTED_REPO, SimpackConfig
from ..errors import PreconditionError
from .packaging import fill_template

TEXT_SUFFIXES = frozenset({".html", ".js", ".css", ".json", ".md", ".txt"})


class WrapperCopier:
    """Copies the restricted wrappers next to the built artifacts."""

    def __init__(self, config: SimpackConfig):
        self.source_dir = config.root / RESTRICTED_REPO / "wrappers"

    async def copy(self, repo: str, version: str, build_dir: Path) -> List[Path]:
        return await asyncio.to_thread(self._copy, repo, version, build_dir)

    def _copy(self, repo: str, version: str, build_dir: Path) -> List[Path]:
        if not self.source_dir.is_dir():
            raise PreconditionError(f"Supplemental wrappers not found: {self.source_dir}")

        target_dir = build_dir / "wrappers"
        written: List[Path] = []
        values = {"REPO": repo, "VERSION": version}
        for source in sorted(self.source_dir.rglob("*")):
            if not source.is_file():
                continue
            destination = target_dir / source.relative_to(self.source_dir)
            destination.parent.mkdir(parents=True, exist_ok=True)
            if source.suffix.lower() in TEXT_SUFFIXES:
                destination.write_text(fill_template(source.read_text(encoding="utf-8"), values), encoding="utf-8")
            else:
                shutil.copyfile(source, destination)
            written.append(destination)
        return written
