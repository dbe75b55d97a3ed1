"""Third-party license entries.

Each library may ship a third-party-licenses.json mapping an entry name to
its license record ({"text": [...], "license": "MIT", ...}). Entries from all
libraries of a build are merged; on a name clash the first library (in
sorted order) wins and a warning is logged.
"""

import json
import logging
from typing import Any, Dict, Sequence

from ..build.brands import Brand
from ..config import SimpackConfig
from ..errors import PreconditionError
from ..output import log_warning

logger = logging.getLogger(__name__)

LICENSES_FILENAME = "third-party-licenses.json"


class LicenseFileResolver:
    """Merges third-party-licenses.json files across a build's libraries."""

    def __init__(self, config: SimpackConfig):
        self.root = config.root

    def get_entries(self, repo: str, brand: Brand, libs: Sequence[str]) -> Dict[str, Any]:
        entries: Dict[str, Any] = {}
        sources: Dict[str, str] = {}
        for lib in sorted(libs):
            path = self.root / lib / LICENSES_FILENAME
            if not path.is_file():
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise PreconditionError(f"Failed to read {path}: {e}") from e

            for name, entry in data.items():
                if name in entries:
                    if entries[name] != entry:
                        log_warning(f"Conflicting license entry {name!r} in {lib} (keeping {sources[name]})")
                    continue
                entries[name] = entry
                sources[name] = lib

        logger.debug("Third-party entries for %s (%s): %s", repo, brand, sorted(entries))
        return dict(sorted(entries.items()))
