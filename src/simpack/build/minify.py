"""
Code compressor: minifies JavaScript with simpack-specific options.

Processing order is fixed:
    1. Transpile (optional, see transpile.py)
    2. Compress with dead-code elimination; stripped globals are bound to false
    3. Mangle identifiers (optional), keeping the Safari 10 workaround
    4. Escape raw vertical tabs, which browsers and packaging reject

Steps 2 and 3 are a single terser invocation through npx.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config import get_npx_command
from ..errors import ToolInvocationError, TransformError
from ..subprocess_utils import run_tool
from .transpile import transpile

logger = logging.getLogger(__name__)

ASSERTION_GLOBALS = ("assert", "assertSlow")
LOGGING_GLOBALS = ("sceneryLog", "sceneryAccessibilityLog")

# terser renders \x0B as the raw character
_RAW_VERTICAL_TAB = "\x0b"
_ESCAPED_VERTICAL_TAB = "\\x0B"


@dataclass(frozen=True)
class MinifyOptions:
    """Compressor configuration.

    Attributes:
        mangle: Shorten local identifiers
        transpile: Run the code transformer before compressing
        strip_assertions: Bind assertion globals to false so their bodies are dropped
        strip_logging: Bind diagnostic-logging globals to false likewise
    """

    mangle: bool = True
    transpile: bool = False
    strip_assertions: bool = True
    strip_logging: bool = True

    def global_defs(self) -> tuple[str, ...]:
        """Global names bound to false for this configuration."""
        names: tuple[str, ...] = ()
        if self.strip_assertions:
            names += ASSERTION_GLOBALS
        if self.strip_logging:
            names += LOGGING_GLOBALS
        return names


def get_terser_command(options: MinifyOptions, npx: Sequence[str]) -> list[str]:
    """Build the terser command line for the given options."""
    cmd = [*npx, "terser", "--compress", "dead_code=true"]
    for name in options.global_defs():
        cmd += ["--define", f"{name}=false"]

    if options.mangle:
        cmd += ["--mangle", "--safari10"]
        cmd += ["--format", "inline_script=true"]
    else:
        cmd += ["--format", "inline_script=true,beautify=true"]
    return cmd


def minify(js: str, options: Optional[MinifyOptions] = None, npx: Optional[Sequence[str]] = None) -> str:
    """Return a minified version of the code.

    Args:
        js: Source code
        options: Compressor configuration (defaults to MinifyOptions())
        npx: Node tool launcher (defaults to SIMPACK_NPX / npx)

    Returns:
        The minified code

    Raises:
        TransformError: If transpiling or compressing fails; the tool's message is included
    """
    options = options if options is not None else MinifyOptions()
    npx = npx if npx is not None else get_npx_command()

    if options.transpile:
        js = transpile(js, npx=npx)

    cmd = get_terser_command(options, npx)
    try:
        code = run_tool(cmd, input_text=js)
    except ToolInvocationError as e:
        logger.error("terser failed: %s", e.stderr or e)
        raise TransformError(f"Minification failed: {e.stderr or e}") from e

    return code.replace(_RAW_VERTICAL_TAB, _ESCAPED_VERTICAL_TAB)
