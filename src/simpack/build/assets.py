"""
Asset embedding for runnable builds.

Resolves the auxiliary scripts that run before the main code:
- Preloads: declared in package.json, split into production and debug renderings
- Splash image: the brand's splash.svg as a data URI global

Mipmaps are rendered by the MipmapBuilder collaborator from the bundler's
requests; their script is shared by both flavors and is not handled here.
"""

import base64
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..errors import MissingRequiredDataError, PreconditionError
from .brands import Brand, BrandPolicy
from .build_context import BuildRequest, PackageInfo, PreloadSet
from .minify import MinifyOptions, minify

logger = logging.getLogger(__name__)

_MIME_OVERRIDES = {
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
}


def load_file_as_data_uri(path: Path) -> str:
    """Encode a file as a base64 data URI, typed by its extension."""
    suffix = path.suffix.lower()
    mime_type = _MIME_OVERRIDES.get(suffix) or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def get_preload_paths(root: Path, package: PackageInfo, brand: Brand) -> List[Path]:
    """Return preload script paths in execution order.

    Preloads shared by every brand come first, then the brand's own.

    Raises:
        PreconditionError: If a declared preload does not exist
    """
    relative = [*package.preload, *package.brand_preload.get(brand.value, ())]
    paths = [root / rel for rel in relative]
    missing = [str(p) for p in paths if not p.is_file()]
    if missing:
        raise PreconditionError(f"Preload file(s) not found: {', '.join(missing)}")
    return paths


def get_splash_script(root: Path, brand: Brand) -> str:
    """Script defining the splash image global for a brand.

    Raises:
        MissingRequiredDataError: If the brand has no splash image
    """
    splash_path = root / "brand" / brand.value / "images" / "splash.svg"
    if not splash_path.is_file():
        raise MissingRequiredDataError(f"Splash image not found for brand {brand}: {splash_path}")
    return f'window.SIMPACK_SPLASH_DATA_URI="{load_file_as_data_uri(splash_path)}";'


def embed_preloads(
    raw_preloads: Sequence[str],
    request: BuildRequest,
    policy: BrandPolicy,
    npx: Optional[Sequence[str]] = None,
) -> PreloadSet:
    """Split raw preload scripts into production and debug renderings.

    Production preloads are each minified when the request asks for it. Debug
    preloads are minified (mangled, nothing stripped) only for brands whose
    debug code differs; otherwise they are the raw text.
    """
    if request.minify:
        production_options = MinifyOptions(mangle=request.mangle)
        production: Tuple[str, ...] = tuple(minify(js, production_options, npx=npx) for js in raw_preloads)
    else:
        production = tuple(raw_preloads)

    if policy.debug_differs:
        debug_options = MinifyOptions(mangle=True, strip_assertions=False, strip_logging=False)
        debug: Tuple[str, ...] = tuple(minify(js, debug_options, npx=npx) for js in raw_preloads)
    else:
        debug = tuple(raw_preloads)

    return PreloadSet(production=production, debug=debug)


@dataclass(frozen=True)
class EmbeddedAssets:
    """Script fragments embedded ahead of the main code."""

    preloads: PreloadSet
    splash_script: str


class AssetEmbedder:
    """Resolves preloads and the splash image for one build.

    Holds no state between calls; invoked once per build.
    """

    def __init__(self, root: Path, npx: Optional[Sequence[str]] = None):
        self.root = root
        self.npx = npx

    def embed(self, request: BuildRequest, policy: BrandPolicy, package: PackageInfo) -> EmbeddedAssets:
        paths = get_preload_paths(self.root, package, request.brand)
        logger.debug("Preloads for %s: %s", request.brand, [str(p) for p in paths])
        raw = [path.read_text(encoding="utf-8") for path in paths]
        return EmbeddedAssets(
            preloads=embed_preloads(raw, request, policy, npx=self.npx),
            splash_script=get_splash_script(self.root, request.brand),
        )
