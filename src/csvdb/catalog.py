"""Process-wide registry of open databases keyed by (owner, name)."""

import logging

from .database import Database
from .paths import StorageLayout

logger = logging.getLogger(__name__)


class Catalog:
    """Holds at most one live Database per (owner, name).

    A database is built from disk the first time it is requested; later
    requests return the same instance, so tables created during the
    process are never lost by reopening.
    """

    def __init__(self, layout: StorageLayout):
        self.layout = layout
        self._databases: dict[tuple[str, str], Database] = {}

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._databases

    def open(self, owner: str, name: str) -> Database:
        key = (owner, name)
        if key not in self._databases:
            logger.debug("Loading database %s/%s from disk", owner, name)
            self._databases[key] = Database(name, owner, self.layout)
        return self._databases[key]

    def forget(self, owner: str, name: str) -> None:
        self._databases.pop((owner, name), None)
