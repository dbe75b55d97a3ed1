"""Output target enumeration.

Decides, from the request and the brand policy, exactly which files a build
emits. This is a pure function of its inputs: no filesystem access, no
collaborator calls. The orchestrator checks optional resources (such as the
screenshot) beforehand and passes the answers in.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from ..config import A11Y_VIEW_HTML_SUFFIX, FALLBACK_LOCALE
from .brands import BrandPolicy
from .build_context import BuildRequest

THUMBNAIL_SIZES: tuple[tuple[int, int], ...] = (
    (128, 84),
    (600, 394),
)

XHTML_DIR = "xhtml"
DEPENDENCIES_FILE = "dependencies.json"


class ArtifactKind(Enum):
    """Kind of file a build emits."""

    LOCALE_HTML = "locale_html"
    ALL_HTML = "all_html"
    DEBUG_HTML = "debug_html"
    XHTML = "xhtml"
    DEPENDENCIES = "dependencies"
    IFRAME = "iframe"
    A11Y_VIEW = "a11y_view"
    SUPPLEMENTAL = "supplemental"
    THUMBNAIL = "thumbnail"
    SOCIAL_CARD = "social_card"


# Kinds whose content is composed from the ordered script list
DOCUMENT_KINDS = frozenset(
    {ArtifactKind.LOCALE_HTML, ArtifactKind.ALL_HTML, ArtifactKind.DEBUG_HTML, ArtifactKind.XHTML}
)


class Flavor(Enum):
    """Which code and preload rendering a document embeds."""

    PRODUCTION = "production"
    DEBUG = "debug"


@dataclass(frozen=True)
class OutputTarget:
    """One file (or, for XHTML and supplemental files, one directory) to emit.

    Attributes:
        kind: What is emitted
        filename: Path relative to the build directory
        locale: Locale the artifact starts in (None for non-locale artifacts)
        width: Image width for thumbnails
        height: Image height for thumbnails
    """

    kind: ArtifactKind
    filename: str
    locale: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_document(self) -> bool:
        return self.kind in DOCUMENT_KINDS

    @property
    def flavor(self) -> Flavor:
        return Flavor.DEBUG if self.kind is ArtifactKind.DEBUG_HTML else Flavor.PRODUCTION

    @property
    def include_all_locales(self) -> bool:
        return self.kind is not ArtifactKind.LOCALE_HTML


def enumerate_output_targets(
    request: BuildRequest,
    policy: BrandPolicy,
    locales: Sequence[str],
    accessible: bool,
    has_screenshot: bool,
) -> List[OutputTarget]:
    """List every output of a build, in the order they are reported.

    Args:
        request: The build request
        policy: Packaging policy of the request's brand
        locales: Resolved per-locale targets (fallback first)
        accessible: Whether the target declares accessibility support
        has_screenshot: Whether the target has a screenshot asset

    Returns:
        Output targets; supplemental files and images come last since they are
        produced after every other file is written
    """
    repo = request.repo
    brand = policy.brand.value
    targets: List[OutputTarget] = []

    if policy.per_locale_artifacts:
        for locale in locales:
            targets.append(OutputTarget(ArtifactKind.LOCALE_HTML, f"{repo}_{locale}_{brand}.html", locale=locale))

    if request.all_html or policy.combined_by_default:
        targets.append(OutputTarget(ArtifactKind.ALL_HTML, f"{repo}_all_{brand}.html", locale=FALLBACK_LOCALE))

    # Debug build is always included
    targets.append(OutputTarget(ArtifactKind.DEBUG_HTML, f"{repo}_all_{brand}_debug.html", locale=FALLBACK_LOCALE))

    targets.append(OutputTarget(ArtifactKind.XHTML, XHTML_DIR, locale=FALLBACK_LOCALE))
    targets.append(OutputTarget(ArtifactKind.DEPENDENCIES, DEPENDENCIES_FILE))

    if policy.default_extras and FALLBACK_LOCALE in locales:
        iframe_locales = [FALLBACK_LOCALE] + (["all"] if request.all_html else [])
        for locale in iframe_locales:
            targets.append(OutputTarget(ArtifactKind.IFRAME, f"{repo}_{locale}_iframe_phet.html", locale=locale))

    if policy.default_extras and accessible:
        targets.append(OutputTarget(ArtifactKind.A11Y_VIEW, f"{repo}{A11Y_VIEW_HTML_SUFFIX}"))

    if policy.supplemental_files:
        targets.append(OutputTarget(ArtifactKind.SUPPLEMENTAL, "wrappers"))

    if has_screenshot:
        for width, height in THUMBNAIL_SIZES:
            targets.append(
                OutputTarget(ArtifactKind.THUMBNAIL, f"{repo}-{width}.png", width=width, height=height)
            )
        if policy.default_extras:
            targets.append(OutputTarget(ArtifactKind.SOCIAL_CARD, f"{repo}-twitter-card.png"))

    return targets


def compose_scripts(
    initialization_script: str,
    splash_script: str,
    mipmaps_script: str,
    preloads: Sequence[str],
    strings_script: str,
    code: str,
) -> List[str]:
    """Ordered script list for one document.

    Initialization and splash define globals the rest reads; the strings
    accessor must be in place before the main code requests translations.
    """
    return [initialization_script, splash_script, mipmaps_script, *preloads, strings_script, code]
