from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import mysql.connector
from mysql.connector.constants import ClientFlag

from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: Outside a transaction every operation gets a short-lived connection.
    Inside ``transaction()`` the current thread reuses one connection until the
    outermost block commits or rolls back.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            # rowcount reports matched rows, so compare-and-set updates that
            # rewrite identical values still count as applied.
            client_flags=[ClientFlag.FOUND_ROWS],
        )

    @property
    def active(self):
        """Connection of the transaction open on this thread, if any."""
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self.active is not None:
            # Nested block joins the outer transaction.
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
