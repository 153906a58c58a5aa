# src/rhosocial/mysqldump/config.py
"""Connection and dump configuration

This module provides the MySQL connection configuration consumed by the
backends and the options that shape a dump file.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .dialect import InsertMode


@dataclass
class MySQLConnectionConfig:
    """MySQL connection configuration.

    Field names follow the usual connection vocabulary; :meth:`to_dict`
    renames them to the keyword arguments mysql-connector-python expects.
    """

    host: str = "localhost"
    port: int = 3306
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    # Character set
    charset: str = "utf8mb4"
    collation: Optional[str] = None

    # Session time zone; dumps are written in UTC
    timezone: Optional[str] = "+00:00"

    # MySQL-specific connection options
    autocommit: bool = True
    init_command: Optional[str] = None
    connect_timeout: int = 10
    use_pure: bool = True
    get_warnings: bool = True

    # SSL
    ssl_ca: Optional[str] = None
    ssl_cert: Optional[str] = None
    ssl_key: Optional[str] = None
    ssl_verify_cert: bool = False
    ssl_disabled: Optional[bool] = None

    # Logging
    log_level: int = logging.INFO

    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides) -> "MySQLConnectionConfig":
        """Build a config from ``MYSQL_*`` environment variables.

        Keyword arguments that are not None take precedence.
        """
        params: Dict[str, Any] = {
            "host": os.getenv("MYSQL_HOST", "localhost"),
            "port": int(os.getenv("MYSQL_PORT", 3306)),
            "database": os.getenv("MYSQL_DATABASE"),
            "username": os.getenv("MYSQL_USER", "root"),
            "password": os.getenv("MYSQL_PASSWORD", ""),
            "charset": os.getenv("MYSQL_CHARSET", "utf8mb4"),
        }
        params.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**params)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to mysql-connector-python connection arguments."""
        config_dict: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.username,
            "password": self.password,
            "charset": self.charset,
            "collation": self.collation,
            "autocommit": self.autocommit,
            "init_command": self.init_command,
            "connection_timeout": self.connect_timeout,
            "use_pure": self.use_pure,
            "get_warnings": self.get_warnings,
            "ssl_ca": self.ssl_ca,
            "ssl_cert": self.ssl_cert,
            "ssl_key": self.ssl_key,
            "ssl_disabled": self.ssl_disabled,
        }
        if self.ssl_verify_cert:
            config_dict["ssl_verify_cert"] = True
        config_dict.update(self.options)

        # Only include non-None values
        return {key: value for key, value in config_dict.items() if value is not None}


@dataclass
class DumpOptions:
    """Options for the dump writer.

    Attributes:
        with_data: Emit a data section per table
        with_drop: Emit ``DROP TABLE IF EXISTS`` before each structure
        insert_mode: Verb used for the data section
        header_title: First line of the header comment
    """

    with_data: bool = True
    with_drop: bool = False
    insert_mode: InsertMode = InsertMode.INSERT
    header_title: str = "rhosocial MySQL Dump"
