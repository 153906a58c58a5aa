# tests/rhosocial/mysqldump/test_backend.py
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from mysql.connector import errors as mysql_errors
from mysql.connector.constants import FieldType
from mysql.connector.conversion import MySQLConverter

from rhosocial.mysqldump.backend import AsyncMySQLBackend, MySQLBackend, QueryResult
from rhosocial.mysqldump.config import MySQLConnectionConfig
from rhosocial.mysqldump.converters import MySQLDumpConverter
from rhosocial.mysqldump.errors import (
    ConnectionError,
    DatabaseError,
    DeadlockError,
    IntegrityError,
    OperationalError,
    QueryError,
)
from rhosocial.mysqldump.types import Double, Float, Integer, ValueKind


def make_cursor(rows=None, description=None, rowcount=0, cursor_class=MagicMock):
    cursor = cursor_class()
    cursor.description = description
    cursor.with_rows = description is not None
    cursor.rowcount = rowcount
    cursor.fetchall.return_value = rows or []
    return cursor


@pytest.fixture
def config():
    return MySQLConnectionConfig(host="db.example", port=3307, database="shop",
                                 username="dumper", password="secret", timezone=None)


@pytest.fixture
def connector():
    with patch("rhosocial.mysqldump.backend.mysql.connector.connect") as connect:
        connect.return_value = MagicMock()
        yield connect


class TestConnection:
    """Connection handling"""

    def test_connection_arguments(self, config, connector):
        backend = MySQLBackend(connection_config=config)
        backend.connect()

        kwargs = connector.call_args.kwargs
        assert kwargs["host"] == "db.example"
        assert kwargs["port"] == 3307
        assert kwargs["user"] == "dumper"
        assert kwargs["database"] == "shop"
        assert kwargs["charset"] == "utf8mb4"
        assert kwargs["converter_class"] is MySQLDumpConverter
        assert "init_command" not in kwargs
        assert "username" not in kwargs
        assert backend.is_connected

    def test_explicit_init_command_is_kept(self, connector):
        backend = MySQLBackend(MySQLConnectionConfig(init_command="SET NAMES latin1"))
        backend.connect()
        assert connector.call_args.kwargs["init_command"] == "SET NAMES latin1"
        cursor = connector.return_value.cursor.return_value
        cursor.execute.assert_called_once_with("SET time_zone = '+00:00'")

    def test_time_zone_is_set_after_connecting(self, connector):
        cursor = make_cursor()
        connector.return_value.cursor.return_value = cursor

        MySQLBackend(MySQLConnectionConfig(timezone="+02:00")).connect()

        cursor.execute.assert_called_once_with("SET time_zone = '+02:00'")
        cursor.close.assert_called_once()

    def test_time_zone_failure_is_a_warning(self, connector, caplog):
        cursor = make_cursor()
        cursor.execute.side_effect = mysql_errors.DatabaseError(msg="Unknown or incorrect time zone", errno=1298)
        connector.return_value.cursor.return_value = cursor
        backend = MySQLBackend(MySQLConnectionConfig(timezone="Mars/Olympus"))

        with caplog.at_level(logging.WARNING, logger="rhosocial.mysqldump.backend"):
            backend.connect()

        assert backend.is_connected
        assert "Could not set MySQL timezone" in caplog.text
        cursor.close.assert_called_once()

    def test_converter_class_can_be_overridden(self, connector):
        MySQLBackend(MySQLConnectionConfig(options={"converter_class": MySQLConverter})).connect()
        assert connector.call_args.kwargs["converter_class"] is MySQLConverter

    def test_connect_failure(self, config, connector):
        connector.side_effect = mysql_errors.InterfaceError(msg="Can't connect", errno=2003)
        backend = MySQLBackend(connection_config=config)

        with pytest.raises(ConnectionError):
            backend.connect()
        assert not backend.is_connected

    def test_context_manager_disconnects(self, config, connector):
        with MySQLBackend(connection_config=config) as backend:
            assert backend.is_connected
        connector.return_value.close.assert_called_once()
        assert not backend.is_connected

    def test_execute_connects_lazily(self, config, connector):
        connector.return_value.cursor.return_value = make_cursor()
        MySQLBackend(connection_config=config).execute("DO 1")
        connector.assert_called_once()

    def test_logger_level_follows_config(self, connector):
        logger = logging.getLogger("test.mysqldump.backend")
        MySQLBackend(MySQLConnectionConfig(log_level=logging.DEBUG), logger=logger)
        assert logger.level == logging.DEBUG


class TestExecute:
    """Statement execution and result building"""

    def test_select(self, config, connector):
        cursor = make_cursor(
            rows=[(1, 0.5, 2.5)],
            description=[("id", FieldType.LONGLONG), ("ratio", FieldType.FLOAT), ("price", FieldType.DOUBLE)],
            rowcount=1,
        )
        connector.return_value.cursor.return_value = cursor

        result = MySQLBackend(connection_config=config).execute("SELECT * FROM t")

        cursor.execute.assert_called_once_with("SELECT * FROM t")
        cursor.close.assert_called_once()
        assert result.columns == ["id", "ratio", "price"]
        assert result.kinds == [None, ValueKind.FLOAT, ValueKind.DOUBLE]
        assert result.rows == [(1, 0.5, 2.5)]
        assert result.affected_rows == 1
        assert result.typed_rows() == [(Integer(1), Float(0.5), Double(2.5))]

    def test_statement_without_rows(self, config, connector):
        cursor = make_cursor(rowcount=3)
        connector.return_value.cursor.return_value = cursor

        result = MySQLBackend(connection_config=config).execute("DELETE FROM t", (1,))

        cursor.execute.assert_called_once_with("DELETE FROM t", (1,))
        cursor.fetchall.assert_not_called()
        assert result == QueryResult(affected_rows=3, duration=result.duration)

    def test_surrogate_escapes_are_sent_as_raw_bytes(self, config, connector):
        cursor = make_cursor()
        connector.return_value.cursor.return_value = cursor

        MySQLBackend(connection_config=config).execute("INSERT INTO t VALUES ('\udcff')")

        cursor.execute.assert_called_once_with(b"INSERT INTO t VALUES ('\xff')")

    @pytest.mark.parametrize("driver_error, expected", [
        (mysql_errors.IntegrityError(msg="Duplicate entry", errno=1062), IntegrityError),
        (mysql_errors.DatabaseError(msg="Cannot add foreign key", errno=1452), IntegrityError),
        (mysql_errors.OperationalError(msg="Deadlock found", errno=1213), DeadlockError),
        (mysql_errors.DatabaseError(msg="Lock wait timeout", errno=1205), DeadlockError),
        (mysql_errors.ProgrammingError(msg="You have an error in your SQL syntax", errno=1064), QueryError),
        (mysql_errors.OperationalError(msg="Server has gone away", errno=2006), OperationalError),
        (mysql_errors.DatabaseError(msg="Unknown", errno=1105), DatabaseError),
        (mysql_errors.InterfaceError(msg="Bad packet"), QueryError),
    ])
    def test_error_translation(self, config, connector, driver_error, expected):
        cursor = make_cursor()
        cursor.execute.side_effect = driver_error
        connector.return_value.cursor.return_value = cursor

        with pytest.raises(expected) as exc_info:
            MySQLBackend(connection_config=config).execute("SELECT 1")

        assert exc_info.value.__cause__ is driver_error
        cursor.close.assert_called_once()

    def test_other_errors_propagate(self, config, connector):
        cursor = make_cursor()
        cursor.execute.side_effect = KeyError("boom")
        connector.return_value.cursor.return_value = cursor

        with pytest.raises(KeyError):
            MySQLBackend(connection_config=config).execute("SELECT 1")


class TestIntrospection:
    """Queries issued by the dump writer"""

    def test_list_tables(self, config, connector):
        cursor = make_cursor(rows=[(bytearray(b"orders"),), ("users",)],
                             description=[("Tables_in_shop", FieldType.VAR_STRING)])
        connector.return_value.cursor.return_value = cursor

        assert MySQLBackend(connection_config=config).list_tables("shop") == ["orders", "users"]
        cursor.execute.assert_called_once_with("SHOW TABLES FROM `shop`")

    def test_show_create_table(self, config, connector):
        cursor = make_cursor(rows=[("users", "CREATE TABLE `users` (\n  `id` int\n)")],
                             description=[("Table", FieldType.VAR_STRING), ("Create Table", FieldType.VAR_STRING)])
        connector.return_value.cursor.return_value = cursor

        create_sql = MySQLBackend(connection_config=config).show_create_table("shop", "users")

        assert create_sql == "CREATE TABLE `users` (\n  `id` int\n)"
        cursor.execute.assert_called_once_with("SHOW CREATE TABLE `shop`.`users`")

    def test_show_create_table_without_rows(self, config, connector):
        connector.return_value.cursor.return_value = make_cursor(
            rows=[], description=[("Table", FieldType.VAR_STRING)])
        assert MySQLBackend(connection_config=config).show_create_table("shop", "gone") is None

    def test_fetch_table_and_use(self, config, connector):
        cursor = make_cursor(rows=[], description=[("id", FieldType.LONG)])
        connector.return_value.cursor.return_value = cursor
        backend = MySQLBackend(connection_config=config)

        backend.use_database("shop")
        backend.fetch_table("shop", "odd`name")

        assert [c.args[0] for c in cursor.execute.call_args_list] == [
            "USE `shop`",
            "SELECT * FROM `shop`.`odd``name`",
        ]


class TestAsyncBackend:
    """Asynchronous backend"""

    @pytest.mark.asyncio
    async def test_execute(self, config):
        cursor = make_cursor(rows=[(1,)], description=[("id", FieldType.LONG)], rowcount=1,
                             cursor_class=AsyncMock)
        connection = AsyncMock()
        connection.cursor.return_value = cursor

        with patch("mysql.connector.aio.connect", new=AsyncMock(return_value=connection)) as connect:
            async with AsyncMySQLBackend(connection_config=config) as backend:
                result = await backend.execute("SELECT id FROM t")

        assert connect.await_args.kwargs["user"] == "dumper"
        cursor.execute.assert_awaited_once_with("SELECT id FROM t")
        cursor.close.assert_awaited_once()
        connection.close.assert_awaited_once()
        assert result.rows == [(1,)]

    @pytest.mark.asyncio
    async def test_error_translation(self, config):
        driver_error = mysql_errors.IntegrityError(msg="Duplicate entry", errno=1062)
        cursor = make_cursor(cursor_class=AsyncMock)
        cursor.execute.side_effect = driver_error
        connection = AsyncMock()
        connection.cursor.return_value = cursor

        with patch("mysql.connector.aio.connect", new=AsyncMock(return_value=connection)):
            backend = AsyncMySQLBackend(connection_config=config)
            with pytest.raises(IntegrityError):
                await backend.execute("INSERT INTO t VALUES (1)")

        cursor.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure(self, config):
        failure = AsyncMock(side_effect=mysql_errors.InterfaceError(msg="Can't connect", errno=2003))
        with patch("mysql.connector.aio.connect", new=failure):
            with pytest.raises(ConnectionError):
                await AsyncMySQLBackend(connection_config=config).connect()

    @pytest.mark.asyncio
    async def test_list_tables(self, config):
        cursor = make_cursor(rows=[(b"users",)], description=[("Tables_in_shop", FieldType.VAR_STRING)],
                             cursor_class=AsyncMock)
        connection = AsyncMock()
        connection.cursor.return_value = cursor

        with patch("mysql.connector.aio.connect", new=AsyncMock(return_value=connection)):
            assert await AsyncMySQLBackend(connection_config=config).list_tables("shop") == ["users"]

    @pytest.mark.asyncio
    async def test_time_zone_is_set_after_connecting(self):
        cursor = make_cursor(cursor_class=AsyncMock)
        connection = AsyncMock()
        connection.cursor.return_value = cursor

        with patch("mysql.connector.aio.connect", new=AsyncMock(return_value=connection)) as connect:
            await AsyncMySQLBackend(MySQLConnectionConfig()).connect()

        assert connect.await_args.kwargs["converter_class"] is MySQLDumpConverter
        cursor.execute.assert_awaited_once_with("SET time_zone = '+00:00'")
        cursor.close.assert_awaited_once()
