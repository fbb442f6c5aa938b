"""Table storage: one schema-bound CSV row file per table."""

import logging
import random
import string
import time
from pathlib import Path

from . import codec
from .paths import TABLE_SUFFIX

logger = logging.getLogger(__name__)

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 12
# 36**12 (~4.7e18) possible ids; a collision is retried rather than accepted
MAX_ID_ATTEMPTS = 16


def generate_unique_id(existing: set[str] | frozenset[str] = frozenset()) -> str:
    """Draw a 12-character [0-9a-z] id not present in ``existing``.

    The generator is seeded with the current time in milliseconds, so two
    inserts within the same millisecond draw the same first candidate; the
    retry loop continues the same stream and moves past it.

    Raises:
        RuntimeError: If no free id was found within MAX_ID_ATTEMPTS draws.
    """
    rng = random.Random(time.time_ns() // 1_000_000)
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = "".join(ID_ALPHABET[rng.randrange(len(ID_ALPHABET))] for _ in range(ID_LENGTH))
        if candidate not in existing:
            return candidate
    raise RuntimeError(f"No free unique id after {MAX_ID_ATTEMPTS} attempts")


def _schema_problem(schema: list[str]) -> str | None:
    if not schema:
        return "schema is empty"
    if any(not f for f in schema):
        return "schema contains an empty field name"
    if not all(codec.is_plain_value(f) for f in schema):
        return "field names must not contain ',' or line breaks"
    if codec.ID_COLUMN in schema:
        return f"'{codec.ID_COLUMN}' is reserved"
    if len(set(schema)) != len(schema):
        return "schema contains duplicate field names"
    return None


class Table:
    """A named table with a fixed schema, backed by ``<base_path>/<name>.csv``."""

    def __init__(self, name: str, schema: list[str], base_path: Path):
        self.name = name
        self.schema = list(schema)
        self.file_path = base_path / f"{name}{TABLE_SUFFIX}"

    def __repr__(self) -> str:
        return f"Table({self.name!r}, {self.schema!r})"

    def initialize(self) -> bool:
        """Create the row file containing only the header line."""
        if problem := _schema_problem(self.schema):
            logger.warning("Cannot initialize table %s: %s", self.name, problem)
            return False

        try:
            codec.write_lines(self.file_path, [codec.encode_header(self.schema)])
        except OSError as e:
            logger.error("Error in initialize() for %s: %s", self.file_path, e)
            return False
        return True

    def load(self) -> bool:
        """Recover the schema from an existing row file's header."""
        try:
            lines = codec.read_lines(self.file_path)
        except OSError as e:
            logger.error("Failed to load table file %s: %s", self.file_path, e)
            return False

        self.schema = codec.decode_header(lines[0]) if lines else []
        if _schema_problem(self.schema):
            logger.warning("Skipping %s: unusable header", self.file_path)
            self.schema = []
            return False
        return True

    def rows(self) -> list[str]:
        """Return all data lines, in insertion order, without the header."""
        lines = codec.read_lines(self.file_path)
        return [line for line in lines[1:] if line]

    def unique_ids(self) -> set[str]:
        return {codec.decode_row(line)[0] for line in self.rows()}

    def insert_row(self, values: list[str]) -> str | None:
        """Append one row and return its generated unique id.

        Returns None (and writes nothing) when the value count does not
        match the schema, a value cannot be stored verbatim, or the file
        cannot be opened for append.
        """
        if len(values) != len(self.schema):
            logger.info(
                "Rejected insert into %s: %d values for %d fields",
                self.name,
                len(values),
                len(self.schema),
            )
            return None
        if not all(codec.is_plain_value(v) for v in values):
            logger.info("Rejected insert into %s: value contains a delimiter", self.name)
            return None
        if not self.file_path.is_file():
            logger.error("Table file missing: %s", self.file_path)
            return None

        try:
            unique_id = generate_unique_id(self.unique_ids())
            codec.append_line(self.file_path, codec.encode_row(unique_id, values))
        except (OSError, RuntimeError) as e:
            logger.error("Failed to append to %s: %s", self.file_path, e)
            return None

        logger.debug("Generated unique ID: %s", unique_id)
        return unique_id
