"""
Notification configuration store.

Handles the active/archived lifecycle of named notification configs,
flat-file persistence and changelog recording.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple
from loguru import logger
from pydantic import ValidationError

from callrelay.models.changelog import ChangelogAction, utc_now_iso
from callrelay.models.notification import NotificationConfig, validate_config_name
from callrelay.services.changelog import ChangelogRecorder
from callrelay.storage import JsonDocumentStore
from callrelay.constants import SYSTEM_CHANGELOG_NAME
from callrelay.utils.errors import AlreadyExistsError, InvalidInputError, NotFoundError, PersistenceError

ConfigMap = Dict[str, NotificationConfig]


def _parse_config(name: Any, data: Any) -> NotificationConfig:
    """Validate one incoming config, raising InvalidInputError on bad input."""
    validate_config_name(name)
    if isinstance(data, NotificationConfig):
        return data
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"Config '{name}' must be an object")
    try:
        return NotificationConfig.model_validate(dict(data))
    except ValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise InvalidInputError(f"Invalid config '{name}'", {"errors": errors}) from e


def _serialize(configs: ConfigMap) -> Dict[str, Any]:
    return {name: config.to_dict() for name, config in configs.items()}


@dataclass
class StoreSnapshot:
    """Point-in-time copy of both config maps."""

    active: ConfigMap
    archived: ConfigMap

    def to_dict(self) -> Dict[str, Any]:
        return {"webhooks": _serialize(self.active), "archived": _serialize(self.archived)}


class ConfigStore:
    """
    Owns every NotificationConfig, split into disjoint active and archived maps.

    Mutations run one at a time under a lock. Each mutation builds the new
    maps, persists them, and only then replaces the in-memory state; if a
    write fails the store is left exactly as it was.
    """

    def __init__(
        self,
        active_store: JsonDocumentStore,
        archived_store: JsonDocumentStore,
        changelog: ChangelogRecorder,
        allow_overwrite_on_create: bool = True,
    ):
        self.active_store = active_store
        self.archived_store = archived_store
        self.changelog = changelog
        self.allow_overwrite_on_create = allow_overwrite_on_create
        self._active: ConfigMap = {}
        self._archived: ConfigMap = {}
        self._lock = asyncio.Lock()

    def _load_map(self, store: JsonDocumentStore) -> ConfigMap:
        raw = store.load(default={})
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring {store.path.name}: expected an object, got {type(raw).__name__}")
            return {}

        configs: ConfigMap = {}
        for name, data in raw.items():
            try:
                configs[name] = _parse_config(name, data)
            except InvalidInputError as e:
                logger.warning(f"Skipping config '{name}' in {store.path.name}: {e.message} {e.details or ''}")
        return configs

    def load(self, seed: Optional[ConfigMap] = None):
        """
        Load both maps from disk.

        Args:
            seed: Configs to create when no active document exists yet
        """
        first_start = not self.active_store.exists()
        self._active = self._load_map(self.active_store)
        self._archived = self._load_map(self.archived_store)

        # A crash between the two writes of a move can leave a name in both
        overlap = set(self._active) & set(self._archived)
        for name in overlap:
            logger.warning(f"Config '{name}' found in both active and archived, keeping the active copy")
            del self._archived[name]

        if first_start and seed:
            self._active = dict(seed)
            try:
                self.active_store.save(_serialize(self._active))
                logger.info(f"Seeded default configs: {', '.join(seed)}")
            except PersistenceError as e:
                logger.warning(f"Could not persist seeded configs: {e.message}")

        logger.info(f"Loaded {len(self._active)} active and {len(self._archived)} archived configs")

    def get(self, name: str) -> Optional[NotificationConfig]:
        """Active config by name, or None."""
        config = self._active.get(name)
        return config.model_copy(deep=True) if config else None

    def get_archived(self, name: str) -> Optional[NotificationConfig]:
        config = self._archived.get(name)
        return config.model_copy(deep=True) if config else None

    def list(self) -> StoreSnapshot:
        """Snapshot of both maps."""
        return StoreSnapshot(
            active={n: c.model_copy(deep=True) for n, c in self._active.items()},
            archived={n: c.model_copy(deep=True) for n, c in self._archived.items()},
        )

    def active_names(self) -> List[str]:
        return list(self._active)

    def export(self) -> Dict[str, Any]:
        """Both maps plus the changelog, as served by the export endpoint."""
        return {**self.list().to_dict(), "changelog": self.changelog.to_list()}

    def _commit(
        self,
        active: Optional[ConfigMap] = None,
        archived: Optional[ConfigMap] = None,
        active_first: bool = True,
    ):
        """
        Persist the given maps, then make them current.

        The map gaining an entry is written first. If the second write fails
        the first document is rewritten from the current in-memory map, so a
        failed operation does not take effect on the next start. Only when
        that rollback also fails is the error flagged with details["partial"];
        load() then keeps the active copy of a name found in both documents.
        """
        writes = [(self.active_store, active), (self.archived_store, archived)]
        if not active_first:
            writes.reverse()

        written: List[JsonDocumentStore] = []
        try:
            for store, configs in writes:
                if configs is not None:
                    store.save(_serialize(configs))
                    written.append(store)
        except PersistenceError as e:
            for store in written:
                current = self._active if store is self.active_store else self._archived
                try:
                    store.save(_serialize(current))
                    logger.warning(f"Rolled back {store.path.name} after a failed write")
                except PersistenceError:
                    logger.error(f"Rollback of {store.path.name} failed, it no longer matches the running state")
                    raise PersistenceError(
                        f"{e.message}; {store.path.name} was already written and could not be rolled back",
                        {"partial": True, "written": store.path.name},
                    ) from e
            raise

        if archived is not None:
            self._archived = archived
        if active is not None:
            self._active = active

    async def create(self, name: Any, config: Any) -> NotificationConfig:
        """
        Insert a config into the active set.

        Raises:
            InvalidInputError: If name or config is missing or invalid
            AlreadyExistsError: If the name is active and overwrite is disabled
        """
        if not name or config is None:
            raise InvalidInputError("Both name and config are required")
        new_config = _parse_config(name, config).model_copy(update={"archived_at": None})

        async with self._lock:
            previous = self._active.get(name)
            if previous is not None and not self.allow_overwrite_on_create:
                raise AlreadyExistsError(f"Config '{name}' already exists")

            active = {**self._active, name: new_config}
            archived = None
            if name in self._archived:
                archived = {n: c for n, c in self._archived.items() if n != name}

            self._commit(active=active, archived=archived)

            details: Dict[str, Any] = {"config": new_config.to_dict()}
            if previous is not None:
                logger.warning(f"Config '{name}' overwritten by create")
                details["previous"] = previous.to_dict()
            await self.changelog.record(ChangelogAction.CONFIG_CREATED, name, details)

        logger.info(f"Config '{name}' created with {len(new_config.recipient_list)} recipient(s)")
        return new_config.model_copy(deep=True)

    async def update(self, name: str, partial: Any) -> Tuple[NotificationConfig, NotificationConfig]:
        """
        Shallow-merge fields over an active config.

        Returns:
            (old, new) snapshots

        Raises:
            NotFoundError: If the name is not active
            InvalidInputError: If the merged config does not validate
        """
        if not isinstance(partial, Mapping):
            raise InvalidInputError("Update body must be an object")

        async with self._lock:
            old = self._active.get(name)
            if old is None:
                raise NotFoundError(f"Config '{name}' not found")

            fields = NotificationConfig.to_alias_keys(dict(partial))
            fields.pop("archivedAt", None)
            new = _parse_config(name, {**old.to_dict(), **fields})

            self._commit(active={**self._active, name: new})
            await self.changelog.record(
                ChangelogAction.CONFIG_UPDATED, name, {"old": old.to_dict(), "new": new.to_dict()}
            )

        logger.info(f"Config '{name}' updated: {', '.join(fields) or 'no fields'}")
        return old.model_copy(deep=True), new.model_copy(deep=True)

    async def archive(self, name: str) -> NotificationConfig:
        """
        Move an active config to the archive.

        Raises:
            NotFoundError: If the name is not active
        """
        async with self._lock:
            config = self._active.get(name)
            if config is None:
                raise NotFoundError(f"Config '{name}' not found")

            archived_config = config.model_copy(update={"archived_at": utc_now_iso()})
            active = {n: c for n, c in self._active.items() if n != name}
            archived = {**self._archived, name: archived_config}

            self._commit(active=active, archived=archived, active_first=False)
            await self.changelog.record(
                ChangelogAction.CONFIG_ARCHIVED, name, {"archivedAt": archived_config.archived_at}
            )

        logger.info(f"Config '{name}' archived")
        return archived_config.model_copy(deep=True)

    async def restore(self, name: str) -> NotificationConfig:
        """
        Move an archived config back to the active set.

        Raises:
            NotFoundError: If the name is not archived
        """
        async with self._lock:
            config = self._archived.get(name)
            if config is None:
                raise NotFoundError(f"Archived config '{name}' not found")

            restored = config.model_copy(update={"archived_at": None})
            archived = {n: c for n, c in self._archived.items() if n != name}
            active = {**self._active, name: restored}

            self._commit(active=active, archived=archived)
            await self.changelog.record(
                ChangelogAction.CONFIG_RESTORED, name, {"archivedAt": config.archived_at}
            )

        logger.info(f"Config '{name}' restored")
        return restored.model_copy(deep=True)

    async def import_data(self, webhooks: Any = None, archived: Any = None) -> Dict[str, int]:
        """
        Shallow-merge imported configs over the current state.

        Imported names replace existing entries of the same name. A name
        imported as active leaves the archive, and vice versa; a name present
        in both imported maps ends up active.

        Raises:
            InvalidInputError: If neither map is given or an entry is invalid
        """
        if webhooks is None and archived is None:
            raise InvalidInputError("Import data must contain 'webhooks' or 'archived'")
        for label, value in (("webhooks", webhooks), ("archived", archived)):
            if value is not None and not isinstance(value, Mapping):
                raise InvalidInputError(f"'{label}' must be an object keyed by config name")

        imported_active: ConfigMap = {}
        for name, data in (webhooks or {}).items():
            imported_active[name] = _parse_config(name, data).model_copy(update={"archived_at": None})

        stamp = utc_now_iso()
        imported_archived: ConfigMap = {}
        for name, data in (archived or {}).items():
            config = _parse_config(name, data)
            if name in imported_active:
                continue
            if not config.archived_at:
                config = config.model_copy(update={"archived_at": stamp})
            imported_archived[name] = config

        async with self._lock:
            active = {
                n: c for n, c in self._active.items() if n not in imported_archived
            }
            active.update(imported_active)
            new_archived = {
                n: c for n, c in self._archived.items() if n not in imported_active
            }
            new_archived.update(imported_archived)

            self._commit(active=active, archived=new_archived)

            counts = {"webhooks": len(imported_active), "archived": len(imported_archived)}
            await self.changelog.record(ChangelogAction.DATA_IMPORTED, SYSTEM_CHANGELOG_NAME, counts)

        logger.info(f"Imported {counts['webhooks']} active and {counts['archived']} archived configs")
        return counts
