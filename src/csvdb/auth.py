"""User accounts, credential checks and the per-user session."""

import hmac
import logging
import shutil
from typing import Protocol

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from . import codec
from .catalog import Catalog
from .database import Database
from .paths import StorageLayout, is_valid_name

logger = logging.getLogger(__name__)

ADMIN_USER = "admin"
ADMIN_PASSWORD = "admin"
DEFAULT_DATABASE = "default"


class CredentialVerifier(Protocol):
    """Turns a password into its stored form and checks it back."""

    def hash(self, password: str) -> str: ...

    def verify(self, stored: str, password: str) -> bool: ...


class PlaintextVerifier:
    """Stores the password verbatim (the historical on-disk format)."""

    def hash(self, password: str) -> str:
        return password

    def verify(self, stored: str, password: str) -> bool:
        return hmac.compare_digest(stored.encode(), password.encode())


class Argon2Verifier:
    """Stores an Argon2 hash produced with argon2-cffi's default parameters."""

    def __init__(self, hasher: PasswordHasher | None = None):
        self.hasher = hasher or PasswordHasher()

    def hash(self, password: str) -> str:
        return self.hasher.hash(password)

    def verify(self, stored: str, password: str) -> bool:
        try:
            return self.hasher.verify(stored, password)
        except (VerificationError, InvalidHashError):
            return False


def make_verifier(scheme: str) -> CredentialVerifier:
    if scheme == "plaintext":
        return PlaintextVerifier()
    if scheme == "argon2":
        return Argon2Verifier()
    raise ValueError(f"Unknown auth scheme: {scheme}")


class AccountStore:
    """Credential files and the global user registry."""

    def __init__(self, layout: StorageLayout, verifier: CredentialVerifier | None = None):
        self.layout = layout
        self.verifier = verifier or PlaintextVerifier()

    def is_first_run(self) -> bool:
        return not self.layout.users_registry.exists()

    def ensure_bootstrap(self) -> bool:
        """Create the admin account and its default database if missing.

        Safe to call repeatedly; returns True only on the call that
        actually created the account.
        """
        if not self.is_first_run():
            return False

        logger.info("Creating admin user and default database...")
        record = codec.UserRecord(self.verifier.hash(ADMIN_PASSWORD), [DEFAULT_DATABASE])
        codec.write_lines(self.layout.user_file(ADMIN_USER), codec.encode_user_record(record))
        self.layout.database_dir(ADMIN_USER, DEFAULT_DATABASE).mkdir(parents=True, exist_ok=True)
        # Registry last: its presence marks bootstrap as complete
        codec.write_lines(self.layout.users_registry, [ADMIN_USER])
        return True

    def list_users(self) -> list[str]:
        try:
            return [u for u in codec.read_lines(self.layout.users_registry) if u]
        except FileNotFoundError:
            return []

    def user_exists(self, name: str) -> bool:
        return name in self.list_users()

    def create_user(self, name: str, password: str) -> bool:
        """Register a new user with no databases."""
        if not is_valid_name(name):
            logger.warning("Invalid user name: %r", name)
            return False
        if "\n" in password or "\r" in password:
            logger.warning("Password for %s contains a line break", name)
            return False
        if self.user_exists(name) or self.layout.user_file(name).exists():
            return False

        try:
            record = codec.UserRecord(self.verifier.hash(password))
            codec.write_lines(self.layout.user_file(name), codec.encode_user_record(record))
            codec.append_line(self.layout.users_registry, name)
        except OSError as e:
            logger.error("Failed to create user %s: %s", name, e)
            return False

        logger.info("Created user %s", name)
        return True

    def load_record(self, name: str) -> codec.UserRecord | None:
        if not is_valid_name(name):
            return None
        try:
            return codec.decode_user_record(codec.read_lines(self.layout.user_file(name)))
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Failed to open user file for %s: %s", name, e)
            return None

    def save_record(self, name: str, record: codec.UserRecord) -> bool:
        try:
            codec.write_lines(self.layout.user_file(name), codec.encode_user_record(record))
        except OSError as e:
            logger.error("Failed to update user file for %s: %s", name, e)
            return False
        return True

    def verify(self, name: str, password: str) -> bool:
        record = self.load_record(name)
        if record is None:
            return False
        logger.debug("Verifying credentials for user: %s", name)
        return self.verifier.verify(record.password, password)


class UserSession:
    """An authenticated user and the databases they own."""

    def __init__(self, name: str, store: AccountStore, catalog: Catalog):
        self.name = name
        self.store = store
        self.catalog = catalog
        self.databases: dict[str, Database] = {}

    def __repr__(self) -> str:
        return f"UserSession({self.name!r}, databases={self.database_names()})"

    def database_names(self) -> list[str]:
        return list(self.databases)

    def has_database(self, name: str) -> bool:
        return name in self.databases

    def get_database(self, name: str) -> Database | None:
        return self.databases.get(name)

    def load_databases(self) -> None:
        """Attach every database listed in the user's credential file."""
        record = self.store.load_record(self.name)
        if record is None:
            logger.error("Failed to open user file for %s", self.name)
            return

        for db_name in record.databases:
            if not is_valid_name(db_name):
                logger.warning("Ignoring invalid database name %r for %s", db_name, self.name)
                continue
            logger.debug("Adding database: %s", db_name)
            self.databases[db_name] = self.catalog.open(self.name, db_name)

        if self.name == ADMIN_USER and not self.databases:
            logger.info("Creating default database for admin")
            self.create_database(DEFAULT_DATABASE)

    def _persist(self) -> bool:
        record = self.store.load_record(self.name)
        if record is None:
            return False
        record.databases = self.database_names()
        return self.store.save_record(self.name, record)

    def create_database(self, name: str) -> bool:
        if not is_valid_name(name) or self.has_database(name):
            return False

        database = self.catalog.open(self.name, name)
        if not database.ensure_directory():
            self.catalog.forget(self.name, name)
            return False

        self.databases[name] = database
        if not self._persist():
            del self.databases[name]
            return False
        return True

    def drop_database(self, name: str) -> bool:
        """Delete a database's directory and remove it from the user's list."""
        database = self.databases.get(name)
        if database is None:
            return False

        try:
            if database.base_path.exists():
                shutil.rmtree(database.base_path)
        except OSError as e:
            logger.error("Error dropping database %s: %s", database.base_path, e)
            return False

        del self.databases[name]
        self.catalog.forget(self.name, name)
        return self._persist()


def login(store: AccountStore, catalog: Catalog, name: str, password: str) -> UserSession | None:
    """Check credentials and build a session, or return None on failure."""
    if not store.verify(name, password):
        logger.info("Login failed for %s", name)
        return None

    session = UserSession(name, store, catalog)
    session.load_databases()
    logger.info("User logged in: %s", name)
    return session
