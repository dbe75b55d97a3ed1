"""
Code transformer: modern JavaScript to broadly-compatible JavaScript.

Runs Babel's preset-env through npx. The browser matrix is fixed; it is
passed through BROWSERSLIST so no babel or browserslist config file in the
target repository can change the output.
"""

import os
from typing import Optional, Sequence

from ..config import get_npx_command
from ..errors import ToolInvocationError, TransformError
from ..subprocess_utils import run_tool

TARGET_BROWSERS = (
    "> 0.5%",
    "safari 9-11",
    "Firefox ESR",
    "IE 11",
    "ios_saf 11",
)


def get_babel_command(npx: Sequence[str]) -> list[str]:
    return [
        *npx,
        "babel",
        "--no-babelrc",
        # true/false doesn't affect the later minified size; true avoids the >500kb warning
        "--compact",
        "true",
        "--presets",
        "@babel/preset-env",
    ]


def transpile(js: str, npx: Optional[Sequence[str]] = None) -> str:
    """Transpile code to the fixed target browser matrix.

    Args:
        js: Source code
        npx: Node tool launcher (defaults to SIMPACK_NPX / npx)

    Returns:
        The transpiled code

    Raises:
        TransformError: If Babel rejects the input or cannot be run
    """
    cmd = get_babel_command(npx if npx is not None else get_npx_command())
    env = os.environ.copy()
    env["BROWSERSLIST"] = ", ".join(TARGET_BROWSERS)
    try:
        return run_tool(cmd, input_text=js, env=env)
    except ToolInvocationError as e:
        raise TransformError(f"Transpilation failed: {e.stderr or e}") from e
