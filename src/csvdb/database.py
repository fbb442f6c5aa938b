"""A user's database: a directory of table files plus their in-memory handles."""

import logging

from .paths import TABLE_SUFFIX, StorageLayout, is_valid_name
from .table import Table

logger = logging.getLogger(__name__)


class Database:
    """Tables owned by one (owner, name) pair.

    Existing table files are rediscovered from disk when the Database is
    constructed; tables created afterwards are registered as they are made.
    """

    def __init__(self, name: str, owner: str, layout: StorageLayout):
        self.name = name
        self.owner = owner
        self.base_path = layout.database_dir(owner, name)
        self.tables: list[Table] = []
        self._load_existing_tables()

    def __repr__(self) -> str:
        return f"Database({self.owner}/{self.name}, tables={self.table_names()})"

    def table_names(self) -> list[str]:
        return [t.name for t in self.tables]

    def ensure_directory(self) -> bool:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Error creating database directory %s: %s", self.base_path, e)
            return False
        return True

    def get_table(self, name: str) -> Table | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def create_table(self, name: str, schema: list[str]) -> bool:
        """Create a table file with a header row and register the table."""
        if not is_valid_name(name):
            logger.warning("Invalid table name: %r", name)
            return False
        if self.get_table(name) is not None:
            logger.warning("Table %s already exists in %s/%s", name, self.owner, self.name)
            return False
        if not self.ensure_directory():
            return False

        table = Table(name, schema, self.base_path)
        if not table.initialize():
            return False
        self.tables.append(table)
        logger.info("Created table %s in %s/%s", name, self.owner, self.name)
        return True

    def drop_table(self, name: str) -> bool:
        """Remove a table's row file and forget the table."""
        table = self.get_table(name)
        if table is None:
            return False

        try:
            table.file_path.unlink()
        except FileNotFoundError:
            logger.warning("Table file already gone: %s", table.file_path)
        except OSError as e:
            logger.error("Error dropping table %s: %s", table.file_path, e)
            return False

        self.tables.remove(table)
        return True

    def _load_existing_tables(self) -> None:
        if not self.base_path.is_dir():
            return

        for entry in sorted(self.base_path.glob(f"*{TABLE_SUFFIX}")):
            if not entry.is_file():
                continue
            table = Table(entry.stem, [], self.base_path)
            if table.load():
                self.tables.append(table)
            else:
                logger.warning("Skipping unreadable table file: %s", entry)
