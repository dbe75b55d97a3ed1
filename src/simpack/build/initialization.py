"""
Initialization script: the first script in every HTML artifact.

Defines the window.simpack global that the splash screen, the string
accessor and the main code read at startup. Output is JSON with sorted keys
so identical inputs give byte-identical scripts.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..config import FALLBACK_LOCALE
from .brands import Brand


@dataclass(frozen=True)
class InitializationOptions:
    """Build-wide values shared by every initialization script."""

    repo: str
    brand: Brand
    version: str
    string_map: Mapping[str, Mapping[str, str]]
    dependencies: Mapping[str, Any]
    timestamp: str
    third_party_entries: Mapping[str, Any]


def _select_strings(
    string_map: Mapping[str, Mapping[str, str]], locale: str, include_all_locales: bool
) -> Dict[str, Mapping[str, str]]:
    if include_all_locales:
        return dict(string_map)
    selected = {FALLBACK_LOCALE: string_map[FALLBACK_LOCALE]}
    if locale in string_map:
        selected[locale] = string_map[locale]
    return selected


def get_initialization_script(
    options: InitializationOptions,
    locale: str,
    include_all_locales: bool,
    is_debug_build: bool,
) -> str:
    """Render the initialization script for one artifact.

    Args:
        options: Build-wide values
        locale: Locale the artifact starts in
        include_all_locales: Embed every locale's strings (and allow switching)
        is_debug_build: Whether the artifact keeps debug-only features

    Returns:
        JavaScript source assigning window.simpack
    """
    data = {
        "project": options.repo,
        "version": options.version,
        "brand": options.brand.value,
        "locale": locale,
        "strings": _select_strings(options.string_map, locale, include_all_locales),
        "dependencies": options.dependencies,
        "buildTimestamp": options.timestamp,
        "thirdPartyEntries": options.third_party_entries,
        "isDebugBuild": is_debug_build,
        "allowLocaleSwitching": include_all_locales,
    }
    payload = json.dumps(data, sort_keys=True, ensure_ascii=False)
    # Keep "</script" out of inline script content
    payload = payload.replace("</", "<\\/")
    return f"window.simpack = {payload};"
