"""
Template-based packaging of composed scripts into documents.

Templates live in simpack/templates and use {{NAME}} placeholders. Filling
is a single pass, so placeholder-like text inside substituted values (a
script that happens to contain "{{TITLE}}") is never expanded, and unknown
placeholders are left for later stages (the a11y viewer's {{IS_BUILT}}).
"""

import html
import re
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from ..build.brands import Brand
from ..config import FALLBACK_LOCALE

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_PLACEHOLDER = re.compile(r"\{\{([A-Z_]+)\}\}")


def fill_template(template: str, values: Mapping[str, str]) -> str:
    """Replace {{KEY}} placeholders whose KEY is in values, in one pass."""

    def substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        return values[key] if key in values else match.group(0)

    return _PLACEHOLDER.sub(substitute, template)


def get_title(string_map: Mapping[str, Mapping[str, str]], title_key: str, locale: str) -> str:
    """Title in the given locale, falling back to the fallback locale."""
    localized = string_map.get(locale, {}).get(title_key)
    return localized or string_map[FALLBACK_LOCALE][title_key]


def _comment_safe(text: str) -> str:
    # "--" may not appear inside an HTML/XML comment
    return text.replace("--", "- -")


def _script_tag(script: str) -> str:
    return f'<script type="text/javascript">{script}</script>'


def _cdata_script_tag(script: str) -> str:
    body = script.replace("]]>", "]]]]><![CDATA[>")
    return f'<script type="text/javascript">//<![CDATA[\n{body}\n//]]></script>'


class TemplatePackager:
    """Packages runnables, iframe wrappers and the a11y viewer from templates."""

    def __init__(self, templates_dir: Optional[Path] = None):
        self.templates_dir = templates_dir if templates_dir is not None else TEMPLATES_DIR

    def _read(self, name: str) -> str:
        return (self.templates_dir / name).read_text(encoding="utf-8")

    def package_runnable(
        self,
        repo: str,
        string_map: Mapping[str, Mapping[str, str]],
        title_key: str,
        html_header: str,
        locale: str,
        scripts: Sequence[str],
    ) -> str:
        """Render a standalone HTML document with every script inlined in order."""
        return fill_template(
            self._read("runnable.html"),
            {
                "HEADER": _comment_safe(html_header),
                "LOCALE": html.escape(locale),
                "TITLE": html.escape(get_title(string_map, title_key, locale)),
                "SCRIPTS": "\n".join(_script_tag(script) for script in scripts),
            },
        )

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
        """Write the ePub-compatible XHTML document into xhtml_dir."""
        document = fill_template(
            self._read("runnable.xhtml"),
            {
                "HEADER": _comment_safe(html_header),
                "LOCALE": FALLBACK_LOCALE,
                "TITLE": html.escape(get_title(string_map, title_key, FALLBACK_LOCALE)),
                "SCRIPTS": "\n".join(_cdata_script_tag(script) for script in scripts),
            },
        )
        xhtml_dir.mkdir(parents=True, exist_ok=True)
        path = xhtml_dir / f"{repo}_all_{brand.value}.xhtml"
        path.write_text(document, encoding="utf-8")
        return [path]

    def get_iframe_html(self, repo: str, title: str, locale: str) -> str:
        """HTML page that embeds the built runnable in an iframe, for testing."""
        return fill_template(
            self._read("iframe.html"),
            {
                "TITLE": html.escape(f"{title} iframe test"),
                "REPOSITORY": repo,
                "LOCALE": locale,
            },
        )

    def get_a11y_view_html(self, repo: str, title: str) -> str:
        """Accessibility viewer page; {{IS_BUILT}} is left for the caller."""
        return fill_template(
            self._read("a11y-view.html"),
            {
                "TITLE": html.escape(title),
                "REPOSITORY": repo,
            },
        )
