"""Storage path layout - single source of truth for all on-disk locations.

Everything lives below one data root:

    account/users.csv                  global user registry
    account/<user>/<user>.csv          password + owned database names
    database/<owner>/<db>/<table>.csv  one table per file
"""

import re
from dataclasses import dataclass
from pathlib import Path

ACCOUNT_DIR_NAME = "account"
DATABASE_DIR_NAME = "database"
USERS_REGISTRY_NAME = "users.csv"
TABLE_SUFFIX = ".csv"

# Names become path components, so keep them to a safe alphabet
_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_-]*$")


def is_valid_name(name: str) -> bool:
    """Check a user, database or table name is usable as a path component."""
    return bool(_NAME_RE.match(name))


@dataclass(frozen=True)
class StorageLayout:
    """Path helpers rooted at a single data directory."""

    root: Path

    @property
    def account_dir(self) -> Path:
        return self.root / ACCOUNT_DIR_NAME

    @property
    def users_registry(self) -> Path:
        return self.account_dir / USERS_REGISTRY_NAME

    @property
    def database_root(self) -> Path:
        return self.root / DATABASE_DIR_NAME

    def user_dir(self, user: str) -> Path:
        return self.account_dir / user

    def user_file(self, user: str) -> Path:
        """Get the credential file path for a user."""
        return self.user_dir(user) / f"{user}.csv"

    def owner_dir(self, owner: str) -> Path:
        return self.database_root / owner

    def database_dir(self, owner: str, database: str) -> Path:
        """Get the directory holding the table files of a database."""
        return self.owner_dir(owner) / database

    def table_file(self, owner: str, database: str, table: str) -> Path:
        return self.database_dir(owner, database) / f"{table}{TABLE_SUFFIX}"
