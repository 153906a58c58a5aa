# src/rhosocial/mysqldump/dialect.py
"""MySQL quoting and statement fragments used by the dump writer."""

from enum import Enum
from typing import Iterable, Sequence

from .codec import format_rows


class InsertMode(Enum):
    """Statement verb used for the data section of a dump"""
    INSERT = "INSERT INTO"
    INSERT_IGNORE = "INSERT IGNORE INTO"
    REPLACE = "REPLACE INTO"

    @classmethod
    def from_name(cls, name: str) -> "InsertMode":
        """Resolve CLI style names such as ``insert-ignore``."""
        try:
            return cls[name.strip().upper().replace("-", "_").replace(" ", "_")]
        except KeyError:
            raise ValueError(f"Unsupported insert mode: {name}") from None


class MySQLDialect:
    """MySQL dialect helpers"""

    def format_identifier(self, identifier: str) -> str:
        """Quote identifier (table/column name)

        MySQL uses backticks for identifiers
        """
        if '`' in identifier:
            escaped = identifier.replace('`', '``')
            return f"`{escaped}`"
        return f"`{identifier}`"

    def format_qualified_name(self, *parts: str) -> str:
        return ".".join(self.format_identifier(part) for part in parts)

    def format_use(self, database: str) -> str:
        return f"USE {self.format_identifier(database)}"

    def format_drop_table(self, table: str) -> str:
        return f"DROP TABLE IF EXISTS {self.format_identifier(table)};\n"

    def format_insert(self, table: str, rows: Sequence[Iterable],
                      mode: InsertMode = InsertMode.INSERT) -> str:
        """Format a multi-row insert for ``table``.

        Returns an empty string when there are no rows.
        """
        if not rows:
            return ""
        return f"{mode.value} {self.format_identifier(table)} VALUES \n" + format_rows(rows)
