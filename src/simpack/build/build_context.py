"""Build Context - immutable values flowing through one build.

This module defines:
- BuildRequest: Validated parameters of one build (from CLI or API)
- PackageInfo: The target's package.json, read once per build
- CodeArtifacts / PreloadSet: Production and debug renderings of the code
- SharedInputs: Everything resolved once in stage 1 and read by all artifacts

Design:
    BuildRequest replaces a long positional parameter list. It is created
    through BuildRequest.create(), which validates every field and raises
    PreconditionError, so an invalid request never reaches the orchestrator.
    Everything else here is frozen: once a stage produces a value, later
    stages (and the parallel artifact writers) only read it.
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from ..errors import PreconditionError
from .brands import Brand

if TYPE_CHECKING:
    from .collaborators import BundleResult

ALL_LOCALES = "*"

# Language code with an optional region or script suffix (en, zh_CN, ast)
LOCALE_PATTERN = re.compile(r"^[A-Za-z]{2,3}(_[A-Za-z0-9]+)?$")


def parse_locales_option(locales_option: str) -> Optional[Tuple[str, ...]]:
    """Parse a locale selector ("*" or comma-separated codes).

    Returns:
        None for "*" (all locales), otherwise the requested codes in order

    Raises:
        PreconditionError: If the selector is empty, not a string, or names a malformed code
    """
    if not isinstance(locales_option, str) or not locales_option.strip():
        raise PreconditionError(f"Invalid locales option: {locales_option!r}")
    if locales_option.strip() == ALL_LOCALES:
        return None
    locales = tuple(code.strip() for code in locales_option.split(",") if code.strip())
    if not locales:
        raise PreconditionError(f"Invalid locales option: {locales_option!r}")
    for code in locales:
        if not LOCALE_PATTERN.match(code):
            raise PreconditionError(f"Invalid locale code: {code!r}")
    return locales


@dataclass(frozen=True)
class BuildRequest:
    """Validated parameters for building one runnable.

    Attributes:
        repo: Target repository name (directory under the workspace root)
        brand: Distribution variant
        locales: Requested locales, or None for the fallback plus all declared locales
        instrument: Whether the bundler should instrument the code
        all_html: Whether to produce the combined all-locales artifact
        minify: Whether to compress the production code and preloads
        mangle: When minifying, whether to shorten identifiers
    """

    repo: str
    brand: Brand
    locales: Optional[Tuple[str, ...]]
    instrument: bool
    all_html: bool
    minify: bool
    mangle: bool

    @classmethod
    def create(
        cls,
        repo: str,
        brand: Union[Brand, str] = Brand.PHET,
        locales: str = ALL_LOCALES,
        instrument: bool = False,
        all_html: bool = False,
        minify: bool = True,
        mangle: bool = True,
    ) -> "BuildRequest":
        """Create a BuildRequest, validating every field.

        Raises:
            PreconditionError: If any parameter has the wrong type or value
        """
        if not isinstance(repo, str) or not repo.strip():
            raise PreconditionError(f"Target repository must be a non-empty string, got {repo!r}")
        if "/" in repo or "\\" in repo or repo in (".", ".."):
            raise PreconditionError(f"Target repository must be a plain directory name, got {repo!r}")

        for name, value in (("instrument", instrument), ("all_html", all_html), ("minify", minify), ("mangle", mangle)):
            if not isinstance(value, bool):
                raise PreconditionError(f"{name} must be a bool, got {value!r}")

        if isinstance(brand, str):
            try:
                brand = Brand(brand)
            except ValueError:
                raise PreconditionError(f"Unknown brand: {brand}") from None
        elif not isinstance(brand, Brand):
            raise PreconditionError(f"Unknown brand: {brand!r}")

        return cls(
            repo=repo,
            brand=brand,
            locales=parse_locales_option(locales),
            instrument=instrument,
            all_html=all_html,
            minify=minify,
            mangle=mangle,
        )


@dataclass(frozen=True)
class PackageInfo:
    """The parts of a target's package.json the build reads.

    Attributes:
        name: Repository name
        version: Version string embedded in banners and metadata
        namespace: String-key namespace (title key is "<namespace>/<repo>.title")
        libs: Sibling repositories the runnable depends on
        preload: Preload script paths (relative to the workspace root) for every brand
        brand_preload: Extra preload paths per brand name
        accessible: Whether the runnable supports the accessibility viewer
    """

    name: str
    version: str
    namespace: str
    libs: Tuple[str, ...] = ()
    preload: Tuple[str, ...] = ()
    brand_preload: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    accessible: bool = False

    @property
    def title_string_key(self) -> str:
        return f"{self.namespace}/{self.name}.title"

    @classmethod
    def load(cls, repo_dir: Path) -> "PackageInfo":
        """Read package.json from a repository directory.

        Raises:
            PreconditionError: If the file is missing, unreadable or lacks required fields
        """
        package_json = repo_dir / "package.json"
        if not package_json.exists():
            raise PreconditionError(f"package.json not found in {repo_dir}")
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PreconditionError(f"Failed to read {package_json}: {e}") from e
        return cls.from_dict(repo_dir.name, data)

    @classmethod
    def from_dict(cls, repo: str, data: Dict[str, Any]) -> "PackageInfo":
        section = data.get("simpack")
        if not isinstance(section, dict):
            raise PreconditionError(f"package.json of {repo} has no 'simpack' section")
        if not section.get("namespace"):
            raise PreconditionError(f"package.json of {repo} does not declare simpack.namespace")
        if not data.get("version"):
            raise PreconditionError(f"package.json of {repo} does not declare a version")

        brand_preload = {
            brand: tuple(paths) for brand, paths in section.get("brandPreload", {}).items()
        }
        return cls(
            name=repo,
            version=str(data["version"]),
            namespace=section["namespace"],
            libs=tuple(section.get("libs", [])),
            preload=tuple(section.get("preload", [])),
            brand_preload=brand_preload,
            accessible=bool(section.get("accessible", False)),
        )


@dataclass(frozen=True)
class CodeArtifacts:
    """The production and debug renderings of the main bundle."""

    production: str
    debug: str


@dataclass(frozen=True)
class PreloadSet:
    """Ordered preload script fragments in both flavors.

    The two tuples are parallel: debug[i] renders the same preload as production[i].
    """

    production: Tuple[str, ...]
    debug: Tuple[str, ...]


@dataclass(frozen=True)
class SharedInputs:
    """Inputs resolved once per build (stage 1) and shared by all artifacts.

    Attributes:
        package: Target package info
        bundle: Module bundler result (code plus diagnostics)
        dependencies: Dependency manifest, written once and embedded everywhere
        locales: Locales that get per-locale artifacts
        all_locales: Fallback locale plus every locale the target declares
        string_map: locale -> (string key -> text), across all locales
        third_party_entries: License entries for third-party code and media
        mipmaps_script: Embeddable mipmap script (shared by both flavors)
        libs: Repositories the runnable draws code and strings from
        timestamp: Build timestamp shared by every artifact
        year: Copyright year embedded in the banner
    """

    package: PackageInfo
    bundle: "BundleResult"
    dependencies: Dict[str, Any]
    locales: Tuple[str, ...]
    all_locales: Tuple[str, ...]
    string_map: Dict[str, Dict[str, str]]
    third_party_entries: Dict[str, Any]
    mipmaps_script: str
    libs: Tuple[str, ...]
    timestamp: str
    year: int


def get_libs(package: PackageInfo, brand: Brand) -> Tuple[str, ...]:
    """Repositories whose strings and versions belong to this build.

    The target itself, its declared libs and the brand directory, deduplicated
    and sorted so the manifest and string map are deterministic.
    """
    libs: List[str] = [package.name, *package.libs, "brand"]
    return tuple(sorted(set(libs)))
