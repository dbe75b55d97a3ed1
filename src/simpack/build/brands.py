"""Brand (distribution variant) configuration.

This module is the single place where a brand's packaging behavior is
decided. The orchestrator looks up a BrandPolicy once and consults its flags
while enumerating output targets, instead of comparing brand names inline.

Design:
    Each brand declares ALL of the flags it controls explicitly. Adding a
    brand means adding one Brand member and one BRAND_POLICIES entry.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import RESTRICTED_REPO


class Brand(Enum):
    """Brand enum for type-safe brand selection."""

    PHET = "phet"
    PHET_IO = "phet-io"
    ADAPTED_FROM_PHET = "adapted-from-phet"

    def __str__(self) -> str:
        """Return the string value for directory names and display."""
        return self.value


class BannerKind(Enum):
    """Which license banner heads every HTML artifact."""

    OPEN = "open"
    RESTRICTED = "restricted"


@dataclass(frozen=True)
class BrandPolicy:
    """Packaging flags for one brand.

    All fields are mandatory - no defaults.

    Attributes:
        brand: The brand these flags belong to
        per_locale_artifacts: Emit one {repo}_{locale}_{brand}.html per locale
        combined_by_default: Emit {repo}_all_{brand}.html even if not requested
        debug_differs: Debug code/preloads get their own (non-stripping) minify pass
        supplemental_files: Copy the restricted supplemental files after writing
        default_extras: Emit iframe wrappers, the a11y viewer and the social card
        banner: License banner used in the HTML header comment
        required_sibling: Sibling directory that must exist under the workspace root
    """

    brand: Brand
    per_locale_artifacts: bool
    combined_by_default: bool
    debug_differs: bool
    supplemental_files: bool
    default_extras: bool
    banner: BannerKind
    required_sibling: Optional[str]


BRAND_POLICIES: dict[Brand, BrandPolicy] = {
    Brand.PHET: BrandPolicy(
        brand=Brand.PHET,
        per_locale_artifacts=True,
        combined_by_default=False,
        debug_differs=False,
        supplemental_files=False,
        default_extras=True,
        banner=BannerKind.OPEN,
        required_sibling=None,
    ),
    Brand.PHET_IO: BrandPolicy(
        brand=Brand.PHET_IO,
        per_locale_artifacts=False,
        combined_by_default=True,
        debug_differs=True,
        supplemental_files=True,
        default_extras=False,
        banner=BannerKind.RESTRICTED,
        required_sibling=RESTRICTED_REPO,
    ),
    Brand.ADAPTED_FROM_PHET: BrandPolicy(
        brand=Brand.ADAPTED_FROM_PHET,
        per_locale_artifacts=True,
        combined_by_default=False,
        debug_differs=False,
        supplemental_files=False,
        default_extras=False,
        banner=BannerKind.OPEN,
        required_sibling=None,
    ),
}

BRAND_NAMES: tuple[str, ...] = tuple(brand.value for brand in Brand)


def get_brand_policy(brand: Brand) -> BrandPolicy:
    """Get the packaging policy for a brand."""
    return BRAND_POLICIES[brand]
