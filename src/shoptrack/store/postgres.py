from __future__ import annotations

import logging
from typing import Optional

import psycopg
from psycopg.types.json import Jsonb

from ..db import Db, DbError
from .base import RecordStore, check_collection

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS record (
  collection  text        NOT NULL,
  id          text        NOT NULL,
  position    bigserial,
  data        jsonb       NOT NULL,
  updated_at  timestamptz NOT NULL DEFAULT now(),
  PRIMARY KEY (collection, id)
);

CREATE TABLE IF NOT EXISTS sequence_counter (
  key    text   PRIMARY KEY,
  value  bigint NOT NULL
);
"""


class PostgresStore(RecordStore):
    def __init__(self, db: Db) -> None:
        self.db = db

    def ensure_schema(self) -> None:
        try:
            with self.db.transaction() as conn:
                conn.execute(SCHEMA)
        except psycopg.Error as e:
            raise DbError(f"Cannot create store schema: {e}") from e
        logger.info("Store schema ready")

    def get(self, collection: str, record_id: str) -> Optional[dict]:
        check_collection(collection)
        try:
            with self.db.session() as conn:
                cur = conn.execute(
                    "SELECT data FROM record WHERE collection = %s AND id = %s;",
                    (collection, record_id),
                )
                row = cur.fetchone()
        except psycopg.Error as e:
            raise DbError(f"Cannot read {collection}/{record_id}: {e}") from e
        return row[0] if row else None

    def all(self, collection: str) -> list[dict]:
        check_collection(collection)
        try:
            with self.db.session() as conn:
                cur = conn.execute(
                    "SELECT data FROM record WHERE collection = %s ORDER BY position;",
                    (collection,),
                )
                rows = cur.fetchall()
        except psycopg.Error as e:
            raise DbError(f"Cannot read {collection}: {e}") from e
        return [r[0] for r in rows]

    def upsert(self, collection: str, record_id: str, record: dict) -> None:
        check_collection(collection)
        try:
            with self.db.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO record(collection, id, data)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (collection, id) DO UPDATE SET
                      data = EXCLUDED.data,
                      updated_at = now();
                    """,
                    (collection, record_id, Jsonb(record)),
                )
        except psycopg.Error as e:
            raise DbError(f"Cannot save {collection}/{record_id}: {e}") from e

    def next_sequence(self, key: str, floor: int = 0) -> int:
        try:
            with self.db.transaction() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO sequence_counter(key, value)
                    VALUES (%s, %s + 1)
                    ON CONFLICT (key) DO UPDATE SET
                      value = GREATEST(sequence_counter.value, %s) + 1
                    RETURNING value;
                    """,
                    (key, floor, floor),
                )
                return int(cur.fetchone()[0])
        except psycopg.Error as e:
            raise DbError(f"Cannot reserve sequence {key}: {e}") from e
