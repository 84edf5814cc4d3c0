"""Local key-value storage — string keys to string values, one file per key.

The on-disk counterpart of a browser's local storage. Values are opaque
strings; callers handle encoding. I/O failures surface as OSError.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

_KEY = re.compile(r"[A-Za-z0-9._-]+")


class LocalStorage:
    """Directory-backed string store.

    Usage:
        storage = LocalStorage(Path("data/board"))
        storage.set_item("safety-dashboard-2026", payload)
        raw = storage.get_item("safety-dashboard-2026")
    """

    def __init__(self, root_dir: Path) -> None:
        self._root = root_dir

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        """Return the file that holds `key`.

        Keys are used verbatim as file names, so they are restricted to
        letters, digits, dot, underscore and hyphen. Anything else raises
        ValueError rather than being rewritten into another key's file.
        """
        if not _KEY.fullmatch(key) or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._root / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        path = self.path_for(key)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as f:
            return f.read()

    def set_item(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            f.write(value)

    def remove_item(self, key: str) -> None:
        """Delete `key`. Missing keys are ignored."""
        self.path_for(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        """Return the keys currently stored."""
        if not self._root.exists():
            return []
        return sorted(p.stem for p in self._root.glob("*.json"))
