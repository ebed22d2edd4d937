"""Persisted set of already-notified listing ids.

State is a JSON array of string ids. An absent file is an empty set and is
created on first load. Saves replace the file atomically so a later load never
observes a partial write. Ids are never removed.
"""

import json
import logging
import os
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)


class SentSet:
    """In-memory set of notified listing ids."""

    def __init__(self, ids: Iterable[str] = ()):
        self._ids: set[str] = {str(listing_id) for listing_id in ids}

    def contains(self, listing_id: str) -> bool:
        return listing_id in self._ids

    def add(self, listing_id: str) -> None:
        self._ids.add(listing_id)

    def __contains__(self, listing_id: object) -> bool:
        return listing_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def to_list(self) -> list[str]:
        """Ids in a stable order for serialization."""
        return sorted(self._ids)


class DedupStore:
    """Loads and saves the sent-id set at a fixed path."""

    def __init__(self, path: Path | str):
        """Initialize the store.

        Args:
            path: Location of the JSON array file.
        """
        self.path = Path(path)

    def load(self) -> SentSet:
        """Load the persisted set, creating an empty one if absent.

        Returns:
            SentSet with every id persisted so far.

        Raises:
            ValueError: If the file does not hold a JSON array.
        """
        if not self.path.exists():
            self.save(SentSet())
            logger.info(f"Created empty sent state at {self.path}")
            return SentSet()

        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, list):
            raise ValueError(f"Sent state at {self.path} is not a JSON array")

        sent = SentSet(data)
        logger.debug(f"Loaded {len(sent)} sent id(s) from {self.path}")
        return sent

    def save(self, sent: SentSet) -> None:
        """Write the set atomically (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(sent.to_list(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.debug(f"Saved {len(sent)} sent id(s) to {self.path}")
