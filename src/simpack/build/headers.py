"""License banners placed in the header comment of every HTML artifact."""

from .brands import BannerKind

_COPYRIGHT = (
    "Copyright 2002-{year}, Regents of the University of Colorado\n"
    "PhET Interactive Simulations, University of Colorado Boulder\n"
)

RESTRICTED_BANNER = (
    "{title} {version}\n"
    + _COPYRIGHT
    + "\n"
    "This Interoperable PhET Simulation file requires a license.\n"
    "USE WITHOUT A LICENSE AGREEMENT IS STRICTLY PROHIBITED.\n"
    "Contact phethelp@colorado.edu regarding licensing.\n"
    "https://phet.colorado.edu/en/licensing"
)

OPEN_BANNER = (
    "{title} {version}\n"
    + _COPYRIGHT
    + "\n"
    "This file is licensed under Creative Commons Attribution 4.0\n"
    "For alternate source code licensing, see https://github.com/phetsims\n"
    "For licenses for third-party software used by this simulation, see below\n"
    "For more information, see https://phet.colorado.edu/en/licensing/html\n"
    "\n"
    "The PhET name and PhET logo are registered trademarks of The Regents of the\n"
    "University of Colorado. Permission is granted to use the PhET name and PhET logo\n"
    "only for attribution purposes. Use of the PhET name and/or PhET logo for promotional,\n"
    "marketing, or advertising purposes requires a separate license agreement from the\n"
    "University of Colorado. Contact phethelp@colorado.edu regarding licensing."
)

BANNERS: dict[BannerKind, str] = {
    BannerKind.RESTRICTED: RESTRICTED_BANNER,
    BannerKind.OPEN: OPEN_BANNER,
}


def get_html_header(banner: BannerKind, title: str, version: str, year: int) -> str:
    """Render the banner for a brand's BannerKind."""
    return BANNERS[banner].format(title=title, version=version, year=year)
