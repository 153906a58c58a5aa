# src/rhosocial/mysqldump/__main__.py
import argparse
import asyncio
import logging
import os
import sys

from .backend import MySQLBackend, AsyncMySQLBackend
from .config import DumpOptions, MySQLConnectionConfig
from .dialect import InsertMode
from .dump import AsyncDumpWriter, DumpWriter
from .errors import ConnectionError, MySQLDumpError, RestoreError
from .restore import read_script, restore_file, restore_file_async
from .splitter import split_statements

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rhosocial-mysqldump",
        description="Dump and restore MySQL databases as SQL scripts.",
        formatter_class=argparse.RawTextHelpFormatter
    )

    # Connection parameters with defaults from environment variables
    parser.add_argument(
        '--host',
        default=os.getenv('MYSQL_HOST', 'localhost'),
        help='Database host (default: MYSQL_HOST environment variable or localhost)'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=int(os.getenv('MYSQL_PORT', 3306)),
        help='Database port (default: MYSQL_PORT environment variable or 3306)'
    )
    parser.add_argument(
        '--user',
        default=os.getenv('MYSQL_USER', 'root'),
        help='Database user (default: MYSQL_USER environment variable or root)'
    )
    parser.add_argument(
        '--password',
        default=os.getenv('MYSQL_PASSWORD', ''),
        help='Database password (default: MYSQL_PASSWORD environment variable or empty string)'
    )
    parser.add_argument(
        '--charset',
        default=os.getenv('MYSQL_CHARSET', 'utf8mb4'),
        help='Connection charset (default: MYSQL_CHARSET environment variable or utf8mb4)'
    )
    parser.add_argument('--use-async', action='store_true', help='Use asynchronous backend')
    parser.add_argument('--log-level', default='INFO', help='Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    export_parser = subparsers.add_parser('export', help='Write a dump of one database to a file')
    export_parser.add_argument('database', help='Database to dump')
    export_parser.add_argument('file', help='Output file path')
    export_parser.add_argument('--no-data', action='store_true', help='Dump table structure only')
    export_parser.add_argument('--drop', action='store_true', help='Emit DROP TABLE IF EXISTS before each table')
    export_parser.add_argument(
        '--mode',
        choices=['insert', 'insert-ignore', 'replace'],
        default='insert',
        help='Statement used for table data (default: insert)'
    )

    import_parser = subparsers.add_parser('import', help='Execute a SQL script statement by statement')
    import_parser.add_argument('file', help='SQL script path')
    import_parser.add_argument(
        '--database',
        default=os.getenv('MYSQL_DATABASE'),
        help='Database to select before importing (default: MYSQL_DATABASE environment variable)'
    )

    split_parser = subparsers.add_parser('split', help='Print the statements of a SQL script without executing them')
    split_parser.add_argument('file', help='SQL script path')

    return parser


def build_config(args) -> MySQLConnectionConfig:
    return MySQLConnectionConfig(
        host=args.host,
        port=args.port,
        username=args.user,
        password=args.password,
        charset=args.charset,
        log_level=logging.getLogger().level
    )


def build_dump_options(args) -> DumpOptions:
    return DumpOptions(
        with_data=not args.no_data,
        with_drop=args.drop,
        insert_mode=InsertMode.from_name(args.mode)
    )


def run_split(args) -> int:
    for statement in split_statements(read_script(args.file)):
        print(f"{statement};")
    return 0


def run_sync(args) -> int:
    backend = MySQLBackend(connection_config=build_config(args))
    try:
        backend.connect()
        if args.command == 'export':
            DumpWriter(backend, build_dump_options(args)).write(args.database, args.file)
        else:
            executed = restore_file(backend, args.file, args.database)
            logger.info(f"Imported {executed} statements from {args.file}")
    finally:
        backend.disconnect()
    return 0


async def run_async(args) -> int:
    backend = AsyncMySQLBackend(connection_config=build_config(args))
    try:
        await backend.connect()
        if args.command == 'export':
            await AsyncDumpWriter(backend, build_dump_options(args)).write(args.database, args.file)
        else:
            executed = await restore_file_async(backend, args.file, args.database)
            logger.info(f"Imported {executed} statements from {args.file}")
    finally:
        await backend.disconnect()
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Set logging level
    numeric_level = getattr(logging, args.log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {args.log_level}')
    logging.getLogger().setLevel(numeric_level)

    try:
        if args.command == 'split':
            return run_split(args)
        if args.use_async:
            return asyncio.run(run_async(args))
        return run_sync(args)
    except ConnectionError as e:
        logger.error(f"Database connection error: {e}")
    except RestoreError as e:
        logger.error(f"Import stopped after {e.executed} statements: {e}")
    except MySQLDumpError as e:
        logger.error(f"Database error: {e}")
    except OSError as e:
        logger.error(f"File error: {e}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
