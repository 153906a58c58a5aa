# src/rhosocial/mysqldump/dump.py
"""
Dump writer.

Produces a UTF-8 SQL file that recreates the structure and, optionally, the
data of every table of one database::

    -- header comment
    SET SQL_MODE / START TRANSACTION / SET time_zone + charset prologue
    per table: [DROP TABLE IF EXISTS] CREATE TABLE ...; [INSERT ... VALUES ...;]
    COMMIT; + charset epilogue

Values are rendered by :mod:`.codec`; the resulting file is read back by
:mod:`.restore`.
"""

import datetime
import logging
from email.utils import format_datetime
from typing import Callable, Iterator, List, Optional

from .backend import AsyncMySQLBackend, MySQLBackend, QueryResult
from .config import DumpOptions
from .dialect import MySQLDialect

PROLOGUE = (
    'SET SQL_MODE = "NO_AUTO_VALUE_ON_ZERO";\n'
    "START TRANSACTION;\n"
    'SET time_zone = "+00:00";\n'
    "\n"
    "/*!40101 SET @OLD_CHARACTER_SET_CLIENT=@@CHARACTER_SET_CLIENT */;\n"
    "/*!40101 SET @OLD_CHARACTER_SET_RESULTS=@@CHARACTER_SET_RESULTS */;\n"
    "/*!40101 SET @OLD_COLLATION_CONNECTION=@@COLLATION_CONNECTION */;\n"
    "/*!40101 SET NAMES utf8mb4 */;\n"
    "\n"
)

EPILOGUE = (
    "COMMIT;\n"
    "/*!40101 SET CHARACTER_SET_CLIENT=@OLD_CHARACTER_SET_CLIENT */;\n"
    "/*!40101 SET CHARACTER_SET_RESULTS=@OLD_CHARACTER_SET_RESULTS */;\n"
    "/*!40101 SET COLLATION_CONNECTION=@OLD_COLLATION_CONNECTION */;\n"
)


def _local_now() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


class DumpFormatter:
    """Renders the sections of a dump file."""

    def __init__(self, options: Optional[DumpOptions] = None,
                 dialect: Optional[MySQLDialect] = None,
                 clock: Callable[[], datetime.datetime] = _local_now):
        self.options = options or DumpOptions()
        self.dialect = dialect or MySQLDialect()
        self._clock = clock

    def header(self, database: str) -> str:
        return (f"-- {self.options.header_title}\n"
                f"-- Database: {database}\n"
                f"-- Date: {format_datetime(self._clock())}\n"
                f"\n"
                f"{PROLOGUE}")

    def structure(self, table: str, create_sql: str) -> str:
        section = f"--\n-- Structure for table {self.dialect.format_identifier(table)}\n--\n\n"
        if self.options.with_drop:
            section += self.dialect.format_drop_table(table)
        return section + f"{create_sql};\n\n"

    def data(self, table: str, result: QueryResult) -> str:
        section = f"--\n-- Dumping data for table {self.dialect.format_identifier(table)}\n--\n\n"
        return section + self.dialect.format_insert(table, result.typed_rows(),
                                                    self.options.insert_mode)

    def footer(self) -> str:
        return EPILOGUE


def _write_chunks(path: str, chunks: List[str]) -> None:
    # surrogateescape reproduces undecodable bytes carried through the codec
    with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
        for chunk in chunks:
            f.write(chunk)


class DumpWriter:
    """Writes a dump of one database using a synchronous backend."""

    def __init__(self, backend: MySQLBackend, options: Optional[DumpOptions] = None,
                 logger: Optional[logging.Logger] = None,
                 formatter: Optional[DumpFormatter] = None):
        self.backend = backend
        self.options = options or DumpOptions()
        self.formatter = formatter or DumpFormatter(self.options)
        self.logger = logger or logging.getLogger("rhosocial.mysqldump.dump")

    def log(self, level: int, msg: str) -> None:
        self.logger.log(level, msg)

    def iter_chunks(self, database: str) -> Iterator[str]:
        """Yield the dump text of ``database`` section by section."""
        yield self.formatter.header(database)
        for table in self.backend.list_tables(database):
            create_sql = self.backend.show_create_table(database, table)
            if create_sql is not None:
                yield self.formatter.structure(table, create_sql)
            if self.options.with_data:
                result = self.backend.fetch_table(database, table)
                self.log(logging.DEBUG, f"Dumping {len(result.rows)} rows of table {table}")
                yield self.formatter.data(table, result)
        yield self.formatter.footer()

    def dump(self, database: str) -> str:
        """Return the complete dump text of ``database``."""
        return "".join(self.iter_chunks(database))

    def write(self, database: str, path: str) -> None:
        """Write the dump of ``database`` to the file at ``path``."""
        self.log(logging.INFO, f"Exporting database {database} to {path}")
        _write_chunks(path, list(self.iter_chunks(database)))
        self.log(logging.INFO, f"Export of database {database} completed")


class AsyncDumpWriter:
    """Writes a dump of one database using an asynchronous backend."""

    def __init__(self, backend: AsyncMySQLBackend, options: Optional[DumpOptions] = None,
                 logger: Optional[logging.Logger] = None,
                 formatter: Optional[DumpFormatter] = None):
        self.backend = backend
        self.options = options or DumpOptions()
        self.formatter = formatter or DumpFormatter(self.options)
        self.logger = logger or logging.getLogger("rhosocial.mysqldump.dump")

    def log(self, level: int, msg: str) -> None:
        self.logger.log(level, msg)

    async def collect_chunks(self, database: str) -> List[str]:
        chunks = [self.formatter.header(database)]
        tables = await self.backend.list_tables(database)
        for table in tables:
            create_sql = await self.backend.show_create_table(database, table)
            if create_sql is not None:
                chunks.append(self.formatter.structure(table, create_sql))
            if self.options.with_data:
                result = await self.backend.fetch_table(database, table)
                self.log(logging.DEBUG, f"Dumping {len(result.rows)} rows of table {table}")
                chunks.append(self.formatter.data(table, result))
        chunks.append(self.formatter.footer())
        return chunks

    async def dump(self, database: str) -> str:
        return "".join(await self.collect_chunks(database))

    async def write(self, database: str, path: str) -> None:
        self.log(logging.INFO, f"Exporting database {database} to {path}")
        _write_chunks(path, await self.collect_chunks(database))
        self.log(logging.INFO, f"Export of database {database} completed")
