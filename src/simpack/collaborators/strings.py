"""
JSON string tables and locale discovery.

Layout:
    <root>/<lib>/<lib>-strings_en.json                  fallback strings
    <root>/babel/<lib>/<lib>-strings_<locale>.json      translations

Each file maps a key to {"value": text}. Keys are namespaced with the
library's simpack.namespace from its package.json, e.g. "EXAMPLE_SIM/title".
Every locale's table starts from the fallback table, so a partially
translated locale still resolves every key.
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..build.build_context import PackageInfo
from ..config import FALLBACK_LOCALE, TRANSLATIONS_REPO, SimpackConfig
from ..errors import PreconditionError

logger = logging.getLogger(__name__)


def get_strings_filename(lib: str, locale: str) -> str:
    return f"{lib}-strings_{locale}.json"


def read_string_file(path: Path) -> Dict[str, str]:
    """Read one string file into key -> text.

    Raises:
        PreconditionError: If the file is not valid JSON of the expected shape
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PreconditionError(f"Failed to read string file {path}: {e}") from e
    if not isinstance(data, dict):
        raise PreconditionError(f"String file {path} must contain a JSON object")

    strings: Dict[str, str] = {}
    for key, entry in data.items():
        if isinstance(entry, dict) and "value" in entry:
            strings[key] = str(entry["value"])
        elif isinstance(entry, str):
            strings[key] = entry
        else:
            raise PreconditionError(f"Malformed entry {key!r} in string file {path}")
    return strings


class JsonStringResolver:
    """Resolves locales and string tables from JSON files in the workspace."""

    def __init__(self, config: SimpackConfig):
        self.root = config.root

    def get_locales(self, repo: str) -> List[str]:
        """Locales with a translation file for the repository, sorted."""
        translations_dir = self.root / TRANSLATIONS_REPO / repo
        if not translations_dir.is_dir():
            return []
        pattern = re.compile(rf"^{re.escape(repo)}-strings_([A-Za-z_]+)\.json$")
        locales = []
        for path in translations_dir.iterdir():
            match = pattern.match(path.name)
            if match and match.group(1) != FALLBACK_LOCALE:
                locales.append(match.group(1))
        return sorted(locales)

    def _get_namespace(self, lib: str) -> Optional[str]:
        lib_dir = self.root / lib
        if not (lib_dir / "package.json").exists():
            return None
        return PackageInfo.load(lib_dir).namespace

    def get_string_map(self, locales: Sequence[str], libs: Sequence[str]) -> Dict[str, Dict[str, str]]:
        """Return locale -> (namespaced key -> text) for the fallback plus locales."""
        fallback: Dict[str, str] = {}
        translations: Dict[str, Dict[str, str]] = {locale: {} for locale in locales if locale != FALLBACK_LOCALE}

        for lib in libs:
            fallback_path = self.root / lib / get_strings_filename(lib, FALLBACK_LOCALE)
            if not fallback_path.is_file():
                continue
            namespace = self._get_namespace(lib)
            if namespace is None:
                raise PreconditionError(f"{lib} has strings but no package.json declaring simpack.namespace")

            for key, text in read_string_file(fallback_path).items():
                fallback[f"{namespace}/{key}"] = text

            for locale, table in translations.items():
                path = self.root / TRANSLATIONS_REPO / lib / get_strings_filename(lib, locale)
                if not path.is_file():
                    logger.debug("No %s translation for %s", locale, lib)
                    continue
                for key, text in read_string_file(path).items():
                    table[f"{namespace}/{key}"] = text

        string_map = {FALLBACK_LOCALE: fallback}
        for locale, table in translations.items():
            string_map[locale] = {**fallback, **table}
        return string_map
