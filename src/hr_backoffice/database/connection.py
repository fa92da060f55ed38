from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config.get("password", "")),
            database=str(db_config["database"]),
        )


class DatabaseConnection:
    """DB connection factory and unit of work.

    Outside a transaction each repository call runs on its own short-lived
    connection. Inside ``transaction()`` every call made on the same thread
    shares one connection, committed when the block exits and rolled back
    if it raises.
    """

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def active_connection(self) -> Optional[Any]:
        return getattr(self._local, "conn", None)

    def in_transaction(self) -> bool:
        return self.active_connection() is not None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self.in_transaction():
            # Nested scopes join the outer unit of work.
            yield
            return

        conn = self.connect()
        conn.start_transaction()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            logger.debug("Rolling back transaction")
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()

    def close(self) -> None:
        conn = self.active_connection()
        if conn is not None:
            conn.close()
            self._local.conn = None
