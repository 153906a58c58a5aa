# src/rhosocial/mysqldump/backend.py
"""
Execution backends for dump and restore.

Both backends expose the same narrow surface: run one SQL statement and get
rows back, plus the handful of introspection queries the dump writer needs.
The synchronous backend uses ``mysql.connector``; the asynchronous one uses
``mysql.connector.aio``.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import mysql.connector
from mysql.connector.constants import FieldType
from mysql.connector.errors import (
    DatabaseError as MySQLDatabaseError,
    Error as MySQLError,
    IntegrityError as MySQLIntegrityError,
    OperationalError as MySQLOperationalError,
    ProgrammingError,
)

from .adapters import AdapterRegistry, default_registry
from .config import MySQLConnectionConfig
from .converters import MySQLDumpConverter
from .dialect import MySQLDialect
from .errors import (
    ConnectionError,
    DatabaseError,
    DeadlockError,
    IntegrityError,
    OperationalError,
    QueryError,
)
from .types import TypedValue, ValueKind

# Driver field types whose values need a kind hint to pick the right variant
_FIELD_TYPE_KINDS = {
    FieldType.FLOAT: ValueKind.FLOAT,
    FieldType.DOUBLE: ValueKind.DOUBLE,
}


@dataclass
class QueryResult:
    """Rows and metadata of one executed statement"""
    columns: List[str] = field(default_factory=list)
    kinds: List[Optional[ValueKind]] = field(default_factory=list)
    rows: List[Tuple] = field(default_factory=list)
    affected_rows: int = 0
    duration: float = 0.0

    def typed_rows(self, registry: Optional[AdapterRegistry] = None) -> List[Tuple[TypedValue, ...]]:
        """Convert every row value into a typed value."""
        registry = registry or default_registry
        kinds = self.kinds or [None] * len(self.columns)
        return [
            tuple(registry.to_typed_value(value, kind) for value, kind in zip(row, kinds))
            for row in self.rows
        ]


class MySQLBackendMixin:
    """Mixin for functionality shared between sync and async backends."""

    config: MySQLConnectionConfig
    logger: logging.Logger

    def _init_backend(self, connection_config: Optional[MySQLConnectionConfig],
                      logger: Optional[logging.Logger]) -> None:
        self.config = connection_config or MySQLConnectionConfig()
        self.logger = logger or logging.getLogger("rhosocial.mysqldump.backend")
        self.logger.setLevel(self.config.log_level)
        self._connection = None
        self._dialect = MySQLDialect()
        self._connection_args = self._prepare_mysql_connection_args()

    @property
    def dialect(self) -> MySQLDialect:
        """Get the MySQL dialect instance"""
        return self._dialect

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def log(self, level: int, msg: str) -> None:
        self.logger.log(level, msg)

    def _prepare_mysql_connection_args(self) -> Dict:
        """Prepare driver connection arguments from the config"""
        connection_args = self.config.to_dict()
        # Zero dates must reach the dump as values, not as NULL
        connection_args.setdefault("converter_class", MySQLDumpConverter)
        return connection_args

    def _translate_error(self, error: Exception) -> Exception:
        """Map a driver error onto this package's exception hierarchy"""
        code = getattr(error, "errno", None)
        if isinstance(error, MySQLIntegrityError) or code in (1062, 1452):
            return IntegrityError(f"MySQL integrity error: {error}")
        if code in (1205, 1213):
            return DeadlockError(f"MySQL deadlock or lock wait timeout: {error}")
        if isinstance(error, ProgrammingError):
            return QueryError(f"MySQL query error: {error}")
        if isinstance(error, MySQLOperationalError):
            return OperationalError(f"MySQL operational error: {error}")
        if isinstance(error, MySQLDatabaseError):
            return DatabaseError(f"MySQL database error: {error}")
        if isinstance(error, MySQLError):
            return QueryError(f"MySQL query error: {error}")
        return error

    def _handle_error(self, error: Exception) -> None:
        """Raise the translated form of a driver error"""
        translated = self._translate_error(error)
        if translated is error:
            raise error
        raise translated from error

    def _build_result(self, cursor, rows: Sequence[Tuple], start_time: float) -> QueryResult:
        description = cursor.description or []
        return QueryResult(
            columns=[column[0] for column in description],
            kinds=[_FIELD_TYPE_KINDS.get(column[1]) for column in description],
            rows=[tuple(row) for row in rows],
            affected_rows=cursor.rowcount if cursor.rowcount is not None else 0,
            duration=time.perf_counter() - start_time,
        )

    def _select_all_sql(self, database: str, table: str) -> str:
        return f"SELECT * FROM {self.dialect.format_qualified_name(database, table)}"

    def _show_tables_sql(self, database: str) -> str:
        return f"SHOW TABLES FROM {self.dialect.format_identifier(database)}"

    def _show_create_table_sql(self, database: str, table: str) -> str:
        return f"SHOW CREATE TABLE {self.dialect.format_qualified_name(database, table)}"

    @staticmethod
    def _prepare_statement(sql: str) -> Union[str, bytes]:
        """Return the statement in the form handed to the driver.

        Undecodable bytes read from a dump file travel as surrogate escapes;
        such statements are sent as the original raw bytes.
        """
        try:
            sql.encode("utf-8")
        except UnicodeEncodeError:
            return sql.encode("utf-8", "surrogateescape")
        return sql

    @staticmethod
    def _decode_name(value: Any) -> str:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8")
        return str(value)


class MySQLBackend(MySQLBackendMixin):
    """MySQL synchronous execution backend"""

    def __init__(self, connection_config: Optional[MySQLConnectionConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self._init_backend(connection_config, logger)

    def __enter__(self) -> "MySQLBackend":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def connect(self) -> None:
        """Establish connection to MySQL database"""
        try:
            self._connection = mysql.connector.connect(**self._connection_args)

            if self.config.timezone:
                cursor = self._connection.cursor()
                try:
                    cursor.execute(f"SET time_zone = '{self.config.timezone}'")
                except MySQLError as e:
                    self.logger.warning(f"Could not set MySQL timezone to {self.config.timezone}: {e}")
                finally:
                    cursor.close()

            self.log(logging.INFO, f"Connected to MySQL at {self.config.host}:{self.config.port}")
        except MySQLError as e:
            raise ConnectionError(f"Failed to connect to MySQL: {e}") from e

    def disconnect(self) -> None:
        """Close connection to MySQL database"""
        if self._connection:
            self._connection.close()
            self._connection = None
            self.log(logging.INFO, "Disconnected from MySQL")

    def _ensure_connection(self) -> None:
        if not self._connection:
            self.log(logging.DEBUG, "No active connection, establishing new connection")
            self.connect()

    def execute(self, sql: str, params: Optional[Tuple] = None) -> QueryResult:
        """Execute one statement and return its rows, if any.

        Raises:
            MySQLDumpError: Translated driver error
        """
        self._ensure_connection()
        start_time = time.perf_counter()
        self.log(logging.DEBUG, f"Executing SQL: {sql}")
        statement = self._prepare_statement(sql)
        cursor = self._connection.cursor()
        try:
            if params:
                cursor.execute(statement, params)
            else:
                cursor.execute(statement)
            rows = cursor.fetchall() if cursor.with_rows else []
            result = self._build_result(cursor, rows, start_time)
        except MySQLError as e:
            self.log(logging.ERROR, f"Error executing SQL: {e}")
            self._handle_error(e)
        finally:
            cursor.close()

        self.log(logging.DEBUG, f"Statement completed, affected {result.affected_rows} rows, "
                                f"duration={result.duration:.3f}s")
        return result

    def use_database(self, database: str) -> None:
        self.execute(self.dialect.format_use(database))

    def list_tables(self, database: str) -> List[str]:
        result = self.execute(self._show_tables_sql(database))
        return [self._decode_name(row[0]) for row in result.rows]

    def show_create_table(self, database: str, table: str) -> Optional[str]:
        result = self.execute(self._show_create_table_sql(database, table))
        if not result.rows:
            return None
        return self._decode_name(result.rows[0][1])

    def fetch_table(self, database: str, table: str) -> QueryResult:
        return self.execute(self._select_all_sql(database, table))


class AsyncMySQLBackend(MySQLBackendMixin):
    """MySQL asynchronous execution backend"""

    def __init__(self, connection_config: Optional[MySQLConnectionConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self._init_backend(connection_config, logger)

    async def __aenter__(self) -> "AsyncMySQLBackend":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        """Establish connection to MySQL database asynchronously"""
        from mysql.connector.aio import connect

        try:
            self._connection = await connect(**self._connection_args)

            if self.config.timezone:
                cursor = await self._connection.cursor()
                try:
                    await cursor.execute(f"SET time_zone = '{self.config.timezone}'")
                except MySQLError as e:
                    self.logger.warning(f"Could not set MySQL timezone to {self.config.timezone}: {e}")
                finally:
                    await cursor.close()

            self.log(logging.INFO, f"Connected to MySQL at {self.config.host}:{self.config.port}")
        except MySQLError as e:
            raise ConnectionError(f"Failed to connect to MySQL: {e}") from e

    async def disconnect(self) -> None:
        """Close connection to MySQL database asynchronously"""
        if self._connection:
            await self._connection.close()
            self._connection = None
            self.log(logging.INFO, "Disconnected from MySQL")

    async def _ensure_connection(self) -> None:
        if not self._connection:
            self.log(logging.DEBUG, "No active connection, establishing new connection")
            await self.connect()

    async def execute(self, sql: str, params: Optional[Tuple] = None) -> QueryResult:
        """Execute one statement asynchronously and return its rows, if any.

        Raises:
            MySQLDumpError: Translated driver error
        """
        await self._ensure_connection()
        start_time = time.perf_counter()
        self.log(logging.DEBUG, f"Executing SQL: {sql}")
        statement = self._prepare_statement(sql)
        cursor = await self._connection.cursor()
        try:
            if params:
                await cursor.execute(statement, params)
            else:
                await cursor.execute(statement)
            rows = await cursor.fetchall() if cursor.with_rows else []
            result = self._build_result(cursor, rows, start_time)
        except MySQLError as e:
            self.log(logging.ERROR, f"Error executing SQL: {e}")
            self._handle_error(e)
        finally:
            await cursor.close()

        self.log(logging.DEBUG, f"Statement completed, affected {result.affected_rows} rows, "
                                f"duration={result.duration:.3f}s")
        return result

    async def use_database(self, database: str) -> None:
        await self.execute(self.dialect.format_use(database))

    async def list_tables(self, database: str) -> List[str]:
        result = await self.execute(self._show_tables_sql(database))
        return [self._decode_name(row[0]) for row in result.rows]

    async def show_create_table(self, database: str, table: str) -> Optional[str]:
        result = await self.execute(self._show_create_table_sql(database, table))
        if not result.rows:
            return None
        return self._decode_name(result.rows[0][1])

    async def fetch_table(self, database: str, table: str) -> QueryResult:
        return await self.execute(self._select_all_sql(database, table))
