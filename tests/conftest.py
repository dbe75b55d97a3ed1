"""Pytest configuration and shared fixtures for simpack tests.

Provides a throwaway workspace of sibling repositories on tmp_path and
in-memory fakes for the collaborators that would otherwise shell out to Node,
git or Pillow.
"""

import io
import json
import sys
import warnings
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

from simpack import output
from simpack.build.brands import Brand
from simpack.build.collaborators import BundleResult, Collaborators, MipmapRequest
from simpack.collaborators.packaging import TemplatePackager
from simpack.collaborators.strings import JsonStringResolver
from simpack.collaborators.third_party import LicenseFileResolver
from simpack.config import SimpackConfig
from simpack.errors import OptionalResourceAbsent, ToolInvocationError

REPO = "example-sim"
NAMESPACE = "EXAMPLE_SIM"
BUNDLE_CODE = "define('example-sim-main',[],function(){if(assert){assert(true)}return 'main';});"
PRELOAD_CODE = "window.preloaded = true;"
FROZEN_NOW = datetime(2026, 10, 16, 14, 3, 11, tzinfo=timezone.utc)

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.fixture(autouse=True)
def _reset_output_stream():
    """Point simpack.output at the (possibly captured) current stdout for each test."""
    previous_stream = output._output_stream
    previous_verbose = output._verbose
    output._output_stream = sys.stdout
    output.set_verbose(True)
    yield
    output._output_stream = previous_stream
    output.set_verbose(previous_verbose)


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def make_workspace(root: Path, accessible: bool = True, screenshot: bool = False, restricted: bool = True) -> Path:
    """Create a minimal workspace with one runnable and its siblings."""
    repo_dir = root / REPO
    _write_json(
        repo_dir / "package.json",
        {
            "name": REPO,
            "version": "1.2.0",
            "simpack": {
                "namespace": NAMESPACE,
                "libs": ["joist"],
                "preload": ["sherpa/lib/preload.js"],
                "brandPreload": {"phet-io": ["phet-io/js/phet-io-preload.js"]},
                "accessible": accessible,
            },
        },
    )
    _write_json(
        repo_dir / f"{REPO}-strings_en.json",
        {"example-sim.title": {"value": "Example Sim"}, "greeting": {"value": "Hello"}},
    )
    _write_json(root / "babel" / REPO / f"{REPO}-strings_es.json", {"example-sim.title": {"value": "Simulación"}})
    _write_json(root / "babel" / REPO / f"{REPO}-strings_fr.json", {"greeting": {"value": "Bonjour"}})

    _write_json(root / "joist" / "package.json", {"name": "joist", "version": "0.0.1", "simpack": {"namespace": "JOIST"}})
    _write_json(root / "joist" / "joist-strings_en.json", {"menu": {"value": "Menu"}})
    _write_json(root / "joist" / "third-party-licenses.json", {"lodash": {"license": "MIT", "text": ["MIT"]}})

    preload = root / "sherpa" / "lib" / "preload.js"
    preload.parent.mkdir(parents=True, exist_ok=True)
    preload.write_text(PRELOAD_CODE, encoding="utf-8")

    for brand in Brand:
        splash = root / "brand" / brand.value / "images" / "splash.svg"
        splash.parent.mkdir(parents=True, exist_ok=True)
        splash.write_text("<svg xmlns='http://www.w3.org/2000/svg'/>", encoding="utf-8")

    if restricted:
        io_preload = root / "phet-io" / "js" / "phet-io-preload.js"
        io_preload.parent.mkdir(parents=True, exist_ok=True)
        io_preload.write_text("window.phetio = {};", encoding="utf-8")

    if screenshot:
        shot = repo_dir / "assets" / f"{REPO}-screenshot.png"
        shot.parent.mkdir(parents=True, exist_ok=True)
        shot.write_bytes(b"\x89PNG fake")
    return root


class FakeBundler:
    def __init__(self, code: str = BUNDLE_CODE):
        self.code = code
        self.calls: List[tuple] = []

    async def bundle(self, repo: str, brand: Brand, instrument: bool) -> BundleResult:
        self.calls.append((repo, brand, instrument))
        return BundleResult(
            code=self.code,
            unused_media=("images/unused.png",),
            unused_strings=(),
            mipmaps=(MipmapRequest(name="ball", path="example-sim/mipmaps/ball.png", level=2),),
        )


class FakeDependencyResolver:
    def __init__(self):
        self.calls: List[tuple] = []

    async def resolve(self, repo: str, libs: Sequence[str]) -> Dict[str, Any]:
        self.calls.append((repo, tuple(libs)))
        return {name: {"sha": f"sha-{name}", "branch": "main"} for name in sorted(set(libs))}


class FakeMipmapBuilder:
    def __init__(self):
        self.requests: List[MipmapRequest] = []

    async def build_script(self, requests: Sequence[MipmapRequest]) -> str:
        self.requests.extend(requests)
        return "window.simpack.mipmaps = {};"


class FakeImageGenerator:
    def __init__(self, root: Path):
        self.root = root

    def get_screenshot(self, repo: str) -> Path:
        path = self.root / repo / "assets" / f"{repo}-screenshot.png"
        if not path.is_file():
            raise OptionalResourceAbsent(f"No screenshot at {path}")
        return path

    async def thumbnail(self, repo: str, width: int, height: int) -> bytes:
        return f"thumbnail {width}x{height}".encode()

    async def social_card(self, repo: str) -> bytes:
        return b"social card"


class FakeSupplementalCopier:
    def __init__(self):
        self.calls: List[tuple] = []

    async def copy(self, repo: str, version: str, build_dir: Path) -> List[Path]:
        # Record which files existed when the copy ran
        existing = sorted(p.name for p in build_dir.iterdir())
        self.calls.append((repo, version, existing))
        return []


def make_collaborators(config: SimpackConfig) -> Collaborators:
    return Collaborators(
        bundler=FakeBundler(),
        dependencies=FakeDependencyResolver(),
        strings=JsonStringResolver(config),
        third_party=LicenseFileResolver(config),
        mipmaps=FakeMipmapBuilder(),
        packager=TemplatePackager(),
        images=FakeImageGenerator(config.root),
        supplemental=FakeSupplementalCopier(),
    )


@pytest.fixture
def workspace(tmp_path) -> Path:
    return make_workspace(tmp_path / "root")


@pytest.fixture
def config(workspace) -> SimpackConfig:
    return SimpackConfig(root=workspace, npx=("npx",))


@pytest.fixture
def collaborators(config) -> Collaborators:
    return make_collaborators(config)


class NodeToolRecorder:
    """Stands in for run_tool in the transpile/minify modules."""

    def __init__(self):
        self.calls: List[List[str]] = []
        self.fail_tool: Optional[str] = None

    def __call__(self, cmd, input_text=None, cwd=None, env=None):
        self.calls.append(list(cmd))
        tool = cmd[1]
        if tool == self.fail_tool:
            raise ToolInvocationError(f"{tool} failed", list(cmd), 1, f"{tool}: Unexpected token (1:4)")
        return f"/*{tool}*/{input_text}"

    def tools(self) -> List[str]:
        return [call[1] for call in self.calls]


@pytest.fixture
def node_tools(monkeypatch) -> NodeToolRecorder:
    """Replace the Node tool invocations of transpile/minify with a recorder."""
    recorder = NodeToolRecorder()
    monkeypatch.setattr("simpack.build.minify.run_tool", recorder)
    monkeypatch.setattr("simpack.build.transpile.run_tool", recorder)
    return recorder


@pytest.fixture
def frozen_clock():
    return lambda: FROZEN_NOW


@pytest.fixture
def make_builder(config, frozen_clock):
    """Factory for RunnableBuilder instances wired to fresh fakes."""
    from simpack.build.orchestrator import RunnableBuilder

    def factory(collaborators: Optional[Collaborators] = None, build_config: Optional[SimpackConfig] = None, **kwargs):
        build_config = build_config if build_config is not None else config
        if collaborators is None:
            collaborators = make_collaborators(build_config)
        return RunnableBuilder(build_config, collaborators=collaborators, clock=kwargs.pop("clock", frozen_clock), **kwargs)

    return factory


@pytest.fixture
def workspace_factory(tmp_path):
    """Create extra workspaces (e.g. without the restricted sibling) under tmp_path."""
    counter = iter(range(1000))

    def factory(**kwargs) -> Path:
        return make_workspace(tmp_path / f"workspace-{next(counter)}", **kwargs)

    return factory


@pytest.fixture
def log_output():
    """Capture simpack.output messages in a StringIO."""
    stream = io.StringIO()
    output._output_stream = stream
    return stream
