"""
Bounded, append-only changelog of configuration mutations and webhook triggers.
"""
import asyncio
from typing import Any, Dict, List, Optional
from loguru import logger
from pydantic import ValidationError

from callrelay.constants import CHANGELOG_MAX_ENTRIES
from callrelay.models.changelog import ChangelogAction, ChangelogEntry
from callrelay.storage import JsonDocumentStore
from callrelay.utils.errors import PersistenceError


class ChangelogRecorder:
    """
    Keeps the most recent changelog entries, oldest first.

    Appends are persisted before they become visible, so the in-memory list
    always matches what is on disk.
    """

    def __init__(
        self,
        store: JsonDocumentStore,
        version: str,
        max_entries: int = CHANGELOG_MAX_ENTRIES,
    ):
        self.store = store
        self.version = version
        self.max_entries = max_entries
        self._entries: List[ChangelogEntry] = []
        self._lock = asyncio.Lock()

    def load(self):
        """Load persisted entries, skipping any that no longer validate."""
        raw = self.store.load(default=[])
        if not isinstance(raw, list):
            logger.warning(f"Ignoring changelog with unexpected type {type(raw).__name__}")
            raw = []

        entries = []
        for item in raw:
            try:
                entries.append(ChangelogEntry.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid changelog entry: {e.errors()[0]['msg']}")

        self._entries = entries[-self.max_entries:]
        logger.info(f"Loaded {len(self._entries)} changelog entries")

    async def record(
        self,
        action: ChangelogAction,
        name: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[ChangelogEntry]:
        """
        Append an entry and persist the truncated log.

        A write failure is logged and the entry dropped; the caller's own
        mutation has already been committed and is not undone.

        Returns:
            The new entry, or None if it could not be persisted
        """
        entry = ChangelogEntry(
            action=action,
            webhook_name=name,
            details=details or {},
            version=self.version,
        )

        async with self._lock:
            entries = (self._entries + [entry])[-self.max_entries:]
            try:
                self.store.save([e.to_dict() for e in entries])
            except PersistenceError as e:
                logger.error(f"Changelog entry '{action.value}' for '{name}' dropped: {e.message}")
                return None
            self._entries = entries

        logger.debug(f"Changelog: {action.value} {name}")
        return entry

    def list(self) -> List[ChangelogEntry]:
        """All entries, newest last."""
        return list(self._entries)

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
