"""Reading rows back out of a table file."""

from . import codec
from .table import Table


def pick_rows(rows: list[str], limit: int | None, last: bool) -> list[str]:
    """Select the leading (or, with ``last``, trailing) ``limit`` rows.

    ``limit=None`` selects everything; counts beyond the available rows
    are clamped.
    """
    if limit is None:
        return list(rows)
    if last:
        return rows[max(0, len(rows) - limit):]
    return rows[:limit]


def select_rows(table: Table, limit: int | None = None, last: bool = False) -> str:
    """Render the header line followed by the selected rows.

    Raises:
        OSError: If the table file cannot be read.
    """
    lines = codec.read_lines(table.file_path)
    header = lines[0] if lines else codec.encode_header(table.schema)
    rows = [line for line in lines[1:] if line]
    return "\n".join([header, *pick_rows(rows, limit, last)])
