"""Local persistence of generated collections.

Collections are written as pretty-printed JSON (4-space indent, slashes and
non-ASCII left unescaped) into ``storage.storage_path``. The filename comes
from ``storage.filename_pattern``:

* ``{name}`` -- slug of the collection name (``My API`` -> ``my-api``)
* ``{date}`` -- ``YYYY-MM-DD``
* ``{time}`` -- ``HHMMSS``

Writes are atomic, so a crash never leaves a half-written collection behind
for the next run to merge against.
"""

from __future__ import annotations

import json
import re
import unicodedata
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from routesync.config import atomic_write
from routesync.exceptions import RoutesyncError
from routesync.models import StorageConfig


def slugify(text: str) -> str:
    """Lowercase ASCII slug with ``-`` separators."""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    return slug or "collection"


def render_filename(pattern: str, name: str, now: datetime) -> str:
    """Expand the ``{name}``, ``{date}`` and ``{time}`` placeholders of *pattern*."""
    return (
        pattern.replace("{name}", slugify(name))
        .replace("{date}", now.strftime("%Y-%m-%d"))
        .replace("{time}", now.strftime("%H%M%S"))
    )


def to_json(document: Any) -> str:
    """Serialise a collection document the way it is stored on disk."""
    return json.dumps(document, indent=4, ensure_ascii=False) + "\n"


class CollectionStore:
    """Reads and writes collection files under one directory.

    Args:
        root: Storage directory. Relative paths resolve against the cwd.
        filename_pattern: Pattern for :func:`render_filename`.
        clock: Source of the current time for ``{date}`` / ``{time}``.
    """

    def __init__(
        self,
        root: Union[str, Path],
        filename_pattern: str = "{name}.postman_collection.json",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.root = Path(root)
        self.filename_pattern = filename_pattern
        self._clock = clock

    @classmethod
    def from_config(cls, config: StorageConfig) -> CollectionStore:
        return cls(config.storage_path, config.filename_pattern)

    def save(self, document: dict[str, Any], filename: Optional[str] = None) -> Path:
        """Write *document* and return the file path.

        Args:
            document: The collection document.
            filename: Explicit file name; rendered from the pattern when omitted.
        """
        if filename is None:
            name = (document.get("info") or {}).get("name") or "collection"
            filename = render_filename(self.filename_pattern, name, self._clock())
        path = self.root / filename
        atomic_write(path, to_json(document))
        return path

    def load(self, path: Union[str, Path]) -> dict[str, Any]:
        """Read a stored collection.

        Raises:
            RoutesyncError: If the file cannot be read or is not a JSON object.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise RoutesyncError(f"Cannot read collection file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise RoutesyncError(f"Collection file {path} does not hold a JSON object")
        return data

    def latest_path(self) -> Optional[Path]:
        """Most recently modified ``*.json`` file in the store, if any."""
        if not self.root.is_dir():
            return None
        candidates = [
            p for p in self.root.glob("*.json") if p.is_file() and not p.name.startswith(".")
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda p: (p.stat().st_mtime, p.name))

    def load_latest(self) -> Optional[dict[str, Any]]:
        """Load the most recently saved collection, or ``None`` when there is none."""
        path = self.latest_path()
        if path is None:
            return None
        return self.load(path)
