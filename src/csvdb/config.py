"""Configuration loading from csvdb.toml.

Resolution order for the data root:
    1. --data-dir / CSVDB_DATA_DIR (passed in by the CLI)
    2. [storage] root in csvdb.toml
    3. the project root (directory holding csvdb.toml, else the cwd)
"""

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path

import pyrootutils
import tomlkit

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "csvdb.toml"
AUTH_SCHEMES = ("plaintext", "argon2")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class Settings:
    data_root: Path
    auth_scheme: str = "plaintext"
    log_level: str = "WARNING"


def find_project_root(start: Path | None = None) -> Path:
    """Find the directory holding csvdb.toml, walking up from ``start``.

    Falls back to ``start`` itself when no marker file exists anywhere above.
    """
    start = (start or Path.cwd()).resolve()
    try:
        return Path(pyrootutils.find_root(search_from=start, indicator=CONFIG_FILE_NAME))
    except FileNotFoundError:
        return start


def _read_config(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid {CONFIG_FILE_NAME}: {e}") from e


def load_settings(root: Path, data_dir: Path | None = None) -> Settings:
    """Build Settings for a project root, honouring an explicit data dir."""
    config = _read_config(root / CONFIG_FILE_NAME)

    if data_dir is not None:
        data_root = data_dir
    elif configured := config.get("storage", {}).get("root"):
        if not isinstance(configured, str):
            raise ConfigError(f"[storage] root must be a string, got {configured!r}")
        data_root = root / configured
    else:
        data_root = root

    auth_scheme = config.get("auth", {}).get("scheme", "plaintext")
    if auth_scheme not in AUTH_SCHEMES:
        raise ConfigError(
            f"Unknown auth scheme '{auth_scheme}' (expected one of: {', '.join(AUTH_SCHEMES)})"
        )

    log_level = str(config.get("logging", {}).get("level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"Unknown log level '{log_level}'")

    logger.debug("Data root: %s (auth=%s)", data_root, auth_scheme)
    return Settings(data_root=data_root.resolve(), auth_scheme=auth_scheme, log_level=log_level)


def write_default_config(root: Path) -> Path | None:
    """Write a commented csvdb.toml into ``root``.

    Returns the written path, or None if a config file already exists.
    """
    path = root / CONFIG_FILE_NAME
    if path.exists():
        return None

    doc = tomlkit.document()
    doc.add(tomlkit.comment("csvdb configuration"))
    doc.add(tomlkit.nl())

    storage = tomlkit.table()
    storage.add(tomlkit.comment("Data directory, relative to this file"))
    storage.add("root", ".")
    doc.add("storage", storage)

    auth = tomlkit.table()
    auth.add(tomlkit.comment("plaintext keeps passwords verbatim; argon2 stores hashes"))
    auth.add("scheme", "plaintext")
    doc.add("auth", auth)

    logging_table = tomlkit.table()
    logging_table.add("level", "WARNING")
    doc.add("logging", logging_table)

    with open(path, "w", encoding="utf-8") as f:
        tomlkit.dump(doc, f)
    return path
