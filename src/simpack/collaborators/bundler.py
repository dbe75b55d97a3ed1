"""
Module bundling with the require.js optimizer (r.js).

Each bundle() call runs one r.js process in its own temporary directory. The
media, string and mipmap plugins loaded by the target's config record what
they resolved in a JSON report (path given in SIMPACK_BUILD_REPORT):

    {
      "loadedMedia": ["images/ball.png", ...],
      "requestedStrings": ["EXAMPLE_SIM/title", ...],
      "mipmaps": [{"name": "ball", "path": "example-sim/mipmaps/ball.png", "level": 3, "quality": 90}]
    }

Unused media and strings are computed from that report and returned in the
BundleResult. Nothing is kept in process state, so concurrent builds never
see each other's diagnostics.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple

from ..build.brands import Brand
from ..build.build_context import PackageInfo
from ..build.collaborators import BundleResult, MipmapRequest
from ..config import FALLBACK_LOCALE, SimpackConfig
from ..errors import PreconditionError
from ..subprocess_utils import run_tool
from .strings import get_strings_filename, read_string_file

logger = logging.getLogger(__name__)

MEDIA_DIRS = ("images", "sounds", "mipmaps")

# Files in media directories that are never loaded by code
_MEDIA_IGNORED = {"license.json", "README.md", ".gitignore"}


def find_unused_media(repo_dir: Path, loaded: Iterable[str]) -> Tuple[str, ...]:
    """Media files under the repository's media directories that were never loaded."""
    loaded_set = {Path(p).as_posix() for p in loaded}
    unused = []
    for media_dir in MEDIA_DIRS:
        base = repo_dir / media_dir
        if not base.is_dir():
            continue
        for path in sorted(base.rglob("*")):
            if path.is_file() and path.name not in _MEDIA_IGNORED:
                relative = path.relative_to(repo_dir).as_posix()
                if relative not in loaded_set:
                    unused.append(relative)
    return tuple(unused)


def find_unused_strings(repo_dir: Path, namespace: str, requested: Iterable[str]) -> Tuple[str, ...]:
    """Keys of the repository's fallback strings that no module requested."""
    strings_path = repo_dir / get_strings_filename(repo_dir.name, FALLBACK_LOCALE)
    if not strings_path.is_file():
        return ()
    requested_set = set(requested)
    return tuple(
        key for key in sorted(read_string_file(strings_path)) if f"{namespace}/{key}" not in requested_set
    )


def parse_mipmaps(entries: Iterable[Dict[str, Any]]) -> Tuple[MipmapRequest, ...]:
    return tuple(
        MipmapRequest(
            name=entry["name"],
            path=entry["path"],
            level=int(entry.get("level", 0)),
            quality=entry.get("quality"),
        )
        for entry in entries
    )


class RequireJSBundler:
    """Bundles a target's modules through r.js, one subprocess per call."""

    def __init__(self, config: SimpackConfig):
        self.config = config

    async def bundle(self, repo: str, brand: Brand, instrument: bool) -> BundleResult:
        return await asyncio.to_thread(self._bundle, repo, brand, instrument)

    def _bundle(self, repo: str, brand: Brand, instrument: bool) -> BundleResult:
        repo_dir = self.config.repo_dir(repo)
        config_path = repo_dir / "js" / f"{repo}-config.js"
        if not config_path.is_file():
            raise PreconditionError(f"require.js config not found: {config_path}")

        with tempfile.TemporaryDirectory(prefix="simpack-bundle-") as tmp:
            out_path = Path(tmp) / "bundle.js"
            report_path = Path(tmp) / "report.json"
            cmd = [
                *self.config.npx,
                "r.js",
                "-o",
                f"mainConfigFile={config_path}",
                f"baseUrl={repo_dir / 'js'}",
                f"name={repo}-main",
                f"insertRequire={repo}-main",
                f"out={out_path}",
                "optimize=none",
                "wrap=true",
            ]
            env = os.environ.copy()
            env["SIMPACK_BRAND"] = brand.value
            env["SIMPACK_INSTRUMENT"] = "true" if instrument else "false"
            env["SIMPACK_BUILD_REPORT"] = str(report_path)

            run_tool(cmd, cwd=repo_dir, env=env)
            code = out_path.read_text(encoding="utf-8")
            report = json.loads(report_path.read_text(encoding="utf-8")) if report_path.is_file() else {}

        if not report:
            logger.debug("r.js produced no build report for %s; diagnostics unavailable", repo)
            return BundleResult(code=code)

        namespace = PackageInfo.load(repo_dir).namespace
        return BundleResult(
            code=code,
            unused_media=find_unused_media(repo_dir, report.get("loadedMedia", [])),
            unused_strings=find_unused_strings(repo_dir, namespace, report.get("requestedStrings", [])),
            mipmaps=parse_mipmaps(report.get("mipmaps", [])),
        )
