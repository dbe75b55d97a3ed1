"""
Image generation with Pillow: thumbnails, the social card and mipmaps.

Thumbnails and the social card are cropped-to-fit renderings of
<root>/<repo>/assets/<repo>-screenshot.png. Mipmaps are successive halvings
of an image, embedded as data URIs in one script.
"""

import asyncio
import base64
import io
import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Sequence

from PIL import Image, ImageOps

from ..build.collaborators import MipmapRequest
from ..config import SimpackConfig
from ..errors import MissingRequiredDataError, OptionalResourceAbsent

logger = logging.getLogger(__name__)

SOCIAL_CARD_SIZE = (240, 240)


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def render_fit(source: Path, width: int, height: int) -> bytes:
    """Scale and center-crop an image to exactly width x height, as PNG bytes."""
    with Image.open(source) as image:
        fitted = ImageOps.fit(image.convert("RGBA"), (width, height), method=Image.Resampling.LANCZOS)
        return encode_png(fitted)


class PillowImageGenerator:
    """Thumbnails and social card from the target's screenshot."""

    def __init__(self, config: SimpackConfig):
        self.root = config.root

    def get_screenshot(self, repo: str) -> Path:
        path = self.root / repo / "assets" / f"{repo}-screenshot.png"
        if not path.is_file():
            raise OptionalResourceAbsent(f"No screenshot at {path}")
        return path

    async def thumbnail(self, repo: str, width: int, height: int) -> bytes:
        return await asyncio.to_thread(render_fit, self.get_screenshot(repo), width, height)

    async def social_card(self, repo: str) -> bytes:
        width, height = SOCIAL_CARD_SIZE
        return await asyncio.to_thread(render_fit, self.get_screenshot(repo), width, height)


def get_mipmap_levels(image: Image.Image, max_level: int) -> List[Image.Image]:
    """Level 0 is the image itself; each next level halves both dimensions (rounding up)."""
    levels = [image]
    for _ in range(max_level):
        previous = levels[-1]
        if previous.width == 1 and previous.height == 1:
            break
        size = (max(1, math.ceil(previous.width / 2)), max(1, math.ceil(previous.height / 2)))
        levels.append(previous.resize(size, Image.Resampling.LANCZOS))
    return levels


def encode_data_uri(image: Image.Image, quality: int | None) -> str:
    buffer = io.BytesIO()
    if quality is None:
        image.save(buffer, format="PNG", optimize=True)
        mime_type = "image/png"
    else:
        image.convert("RGB").save(buffer, format="JPEG", quality=quality)
        mime_type = "image/jpeg"
    return f"data:{mime_type};base64,{base64.b64encode(buffer.getvalue()).decode('ascii')}"


class PillowMipmapBuilder:
    """Renders requested mipmaps into window.simpack.mipmaps."""

    def __init__(self, config: SimpackConfig):
        self.root = config.root

    async def build_script(self, requests: Sequence[MipmapRequest]) -> str:
        return await asyncio.to_thread(self._build_script, requests)

    def _build_script(self, requests: Sequence[MipmapRequest]) -> str:
        mipmaps: Dict[str, List[Dict[str, Any]]] = {}
        for request in requests:
            path = self.root / request.path
            if not path.is_file():
                raise MissingRequiredDataError(f"Mipmap image not found: {path}")
            with Image.open(path) as source:
                image = source.convert("RGBA")
            mipmaps[request.name] = [
                {"width": level.width, "height": level.height, "url": encode_data_uri(level, request.quality)}
                for level in get_mipmap_levels(image, request.level)
            ]
            logger.debug("Mipmap %s: %d levels", request.name, len(mipmaps[request.name]))
        return f"window.simpack.mipmaps = {json.dumps(mipmaps, sort_keys=True)};"
