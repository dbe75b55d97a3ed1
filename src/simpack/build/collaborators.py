"""Collaborator protocols consumed by the build orchestrator.

The orchestrator sequences these components but does not implement them.
Each protocol is deliberately narrow so tests can substitute in-memory fakes
and so alternative implementations (a different bundler, a remote string
service) can be wired in through Collaborators.

Default implementations live in simpack.collaborators and are assembled by
default_collaborators().
"""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Protocol, Sequence, Tuple, runtime_checkable

from .brands import Brand

if TYPE_CHECKING:
    from ..config import SimpackConfig


@dataclass(frozen=True)
class MipmapRequest:
    """A mipmap the bundled code asked for.

    Attributes:
        name: Key under which the mipmap levels are published
        path: Image path relative to the workspace root
        level: Highest mipmap level to generate (0 = full size only)
        quality: JPEG quality (1-100), or None to encode PNG
    """

    name: str
    path: str
    level: int
    quality: int | None = None


@dataclass(frozen=True)
class BundleResult:
    """Output of one module-bundling invocation.

    Diagnostics are returned as values rather than left behind in process
    state, so a build only ever sees its own.

    Attributes:
        code: The single bundled code blob
        unused_media: Media files in the target repository that nothing loaded
        unused_strings: Translatable string keys that nothing requested
        mipmaps: Mipmaps requested by the bundled code, in request order
    """

    code: str
    unused_media: Tuple[str, ...] = ()
    unused_strings: Tuple[str, ...] = ()
    mipmaps: Tuple[MipmapRequest, ...] = ()


@runtime_checkable
class ModuleBundler(Protocol):
    """Turns a target's module graph into a single code blob."""

    async def bundle(self, repo: str, brand: Brand, instrument: bool) -> BundleResult:
        ...


@runtime_checkable
class DependencyResolver(Protocol):
    """Captures the exact revision of every repository in a build."""

    async def resolve(self, repo: str, libs: Sequence[str]) -> Dict[str, Any]:
        """Return {repo: {"sha": ..., "branch": ...}} for the given repositories."""
        ...


@runtime_checkable
class StringResolver(Protocol):
    """Discovers locales and resolves string tables."""

    def get_locales(self, repo: str) -> List[str]:
        """Locales (other than the fallback) the target has translations for."""
        ...

    def get_string_map(self, locales: Sequence[str], libs: Sequence[str]) -> Dict[str, Dict[str, str]]:
        """Return locale -> (namespaced key -> text) for every requested locale."""
        ...


@runtime_checkable
class ThirdPartyResolver(Protocol):
    """Collects license entries for third-party code and media."""

    def get_entries(self, repo: str, brand: Brand, libs: Sequence[str]) -> Dict[str, Any]:
        ...


@runtime_checkable
class MipmapBuilder(Protocol):
    """Renders requested mipmaps into one embeddable script."""

    async def build_script(self, requests: Sequence[MipmapRequest]) -> str:
        ...


@runtime_checkable
class Packager(Protocol):
    """Turns ordered scripts plus metadata into final documents."""

    def package_runnable(
        self,
        repo: str,
        string_map: Mapping[str, Mapping[str, str]],
        title_key: str,
        html_header: str,
        locale: str,
        scripts: Sequence[str],
    ) -> str:
        ...

    def package_xhtml(
        self,
        xhtml_dir: Path,
        repo: str,
        brand: Brand,
        string_map: Mapping[str, Mapping[str, str]],
        title_key: str,
        html_header: str,
        scripts: Sequence[str],
    ) -> List[Path]:
        """Write the ePub-compatible packaging; returns the files written."""
        ...

    def get_iframe_html(self, repo: str, title: str, locale: str) -> str:
        ...

    def get_a11y_view_html(self, repo: str, title: str) -> str:
        ...


@runtime_checkable
class ImageGenerator(Protocol):
    """Generates thumbnails and the social card from a target's screenshot."""

    def get_screenshot(self, repo: str) -> Path:
        """Return the screenshot path; raises OptionalResourceAbsent if there is none."""
        ...

    async def thumbnail(self, repo: str, width: int, height: int) -> bytes:
        ...

    async def social_card(self, repo: str) -> bytes:
        ...


@runtime_checkable
class SupplementalCopier(Protocol):
    """Copies supplemental files that ship alongside restricted builds."""

    async def copy(self, repo: str, version: str, build_dir: Path) -> List[Path]:
        ...


@dataclass
class Collaborators:
    """Every external component the orchestrator drives."""

    bundler: ModuleBundler
    dependencies: DependencyResolver
    strings: StringResolver
    third_party: ThirdPartyResolver
    mipmaps: MipmapBuilder
    packager: Packager
    images: ImageGenerator
    supplemental: SupplementalCopier


def default_collaborators(config: "SimpackConfig") -> Collaborators:
    """Wire the filesystem/subprocess-backed default implementations."""
    from ..collaborators.bundler import RequireJSBundler
    from ..collaborators.dependencies import GitDependencyResolver
    from ..collaborators.images import PillowImageGenerator, PillowMipmapBuilder
    from ..collaborators.packaging import TemplatePackager
    from ..collaborators.strings import JsonStringResolver
    from ..collaborators.supplemental import WrapperCopier
    from ..collaborators.third_party import LicenseFileResolver

    return Collaborators(
        bundler=RequireJSBundler(config),
        dependencies=GitDependencyResolver(config),
        strings=JsonStringResolver(config),
        third_party=LicenseFileResolver(config),
        mipmaps=PillowMipmapBuilder(config),
        packager=TemplatePackager(),
        images=PillowImageGenerator(config),
        supplemental=WrapperCopier(config),
    )
