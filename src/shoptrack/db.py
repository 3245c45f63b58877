from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

import psycopg
from psycopg import Connection

from .config import DbConfig
from .errors import StorageError

logger = logging.getLogger(__name__)


class DbError(StorageError):
    pass


@dataclass(frozen=True)
class Db:
    cfg: DbConfig

    def connect(self) -> Connection:
        try:
            return psycopg.connect(
                host=self.cfg.host,
                port=self.cfg.port,
                dbname=self.cfg.name,
                user=self.cfg.user,
                password=self.cfg.password,
                sslmode=self.cfg.sslmode,
                autocommit=True,
            )
        except psycopg.Error as e:
            logger.error("Connection to %s:%s/%s failed: %s", self.cfg.host, self.cfg.port, self.cfg.name, e)
            raise DbError(
                f"Cannot connect to PostgreSQL at {self.cfg.host}:{self.cfg.port}/{self.cfg.name}. "
                "Check the [db] section of the config and that the server is running."
            ) from e

    @contextmanager
    def session(self) -> Iterator[Connection]:
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        conn = self.connect()
        try:
            conn.execute("BEGIN;")
            yield conn
            conn.execute("COMMIT;")
        except Exception:
            conn.execute("ROLLBACK;")
            raise
        finally:
            conn.close()
