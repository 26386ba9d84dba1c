from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..models.address import Address
from ..services.field_schema import ADDRESS_FIELD_KEYS
from .store import StorageError

"""PostgreSQL AddressStore (psycopg2).

Expects the tables provisioned elsewhere:

- addresses(id, project, address_type, <common field columns>, ship_to_parent)
  where id has a server-side default and ship_to_parent references addresses(id)
  without ON DELETE CASCADE
- project_address_settings(project, address_type, req_<field>..., UNIQUE(project, address_type))

The connection is expected in autocommit mode: transaction boundaries are issued
explicitly (BEGIN / COMMIT / ROLLBACK) by transaction().
"""

__all__ = [
    "PostgresAddressStore",
]

logger = logging.getLogger(__name__)

ADDRESSES_TABLE = "addresses"
SETTINGS_TABLE = "project_address_settings"

_SELECT_COLUMNS = ("id", "project", "address_type", *ADDRESS_FIELD_KEYS, "ship_to_parent")
_INSERT_COLUMNS = ("project", "address_type", *ADDRESS_FIELD_KEYS, "ship_to_parent")
_SETTING_COLUMNS = tuple(f"req_{k}" for k in ADDRESS_FIELD_KEYS)


def _quote(columns: Sequence[str]) -> str:
    return ",".join(f'"{c}"' for c in columns)


def _row_to_address(row: Sequence[Any]) -> Address:
    data = dict(zip(_SELECT_COLUMNS, row, strict=True))
    values = {k: str(data[k]) for k in ADDRESS_FIELD_KEYS if data.get(k) not in (None, "")}
    return Address(
        id=str(data["id"]),
        project=str(data["project"]),
        address_type=str(data["address_type"]),
        values=values,
        ship_to_parent=str(data["ship_to_parent"]) if data.get("ship_to_parent") else None,
    )


class _PostgresTransaction:
    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    def create_address(self, address: Address) -> str:
        params = [address.project, address.address_type]
        params.extend(address.values.get(k) or None for k in ADDRESS_FIELD_KEYS)
        params.append(address.ship_to_parent)
        placeholders = ",".join(["%s"] * len(_INSERT_COLUMNS))
        sql = (
            f"INSERT INTO {ADDRESSES_TABLE} ({_quote(_INSERT_COLUMNS)}) "
            f"VALUES ({placeholders}) RETURNING id"
        )
        try:
            self._cursor.execute(sql, params)
            returned = self._cursor.fetchone()
        except psycopg2.Error as e:
            raise StorageError(str(e).strip()) from e
        if not returned:
            raise StorageError("INSERT did not return an id")
        return str(returned[0])


class PostgresAddressStore:
    def __init__(self, connection: Any) -> None:
        self._conn = connection

    def _fetchall(self, sql: str, params: Sequence[Any]) -> tuple[list[str], list[tuple[Any, ...]]]:
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
                col_names = [d[0] for d in cur.description] if cur.description else []
        except psycopg2.Error as e:
            raise StorageError(str(e).strip()) from e
        return col_names, rows

    def get_address(self, address_id: str) -> Address | None:
        _, rows = self._fetchall(
            f"SELECT {_quote(_SELECT_COLUMNS)} FROM {ADDRESSES_TABLE} WHERE id = %s",
            (address_id,),
        )
        return _row_to_address(rows[0]) if rows else None

    def find_addresses(self, project_id: str, address_type: str) -> list[Address]:
        _, rows = self._fetchall(
            f"SELECT {_quote(_SELECT_COLUMNS)} FROM {ADDRESSES_TABLE} "
            "WHERE project = %s AND address_type = %s",
            (project_id, address_type),
        )
        return [_row_to_address(r) for r in rows]

    def find_required_settings(self, project_id: str, address_type: str) -> Mapping[str, Any] | None:
        col_names, rows = self._fetchall(
            f"SELECT * FROM {SETTINGS_TABLE} WHERE project = %s AND address_type = %s LIMIT 1",
            (project_id, address_type),
        )
        if not rows:
            return None
        return dict(zip(col_names, rows[0], strict=False))

    def save_required_settings(
        self, project_id: str, address_type: str, flags: Mapping[str, bool]
    ) -> None:
        # 未知キーは列名として SQL に埋め込まない
        columns = [c for c in _SETTING_COLUMNS if c in flags]
        insert_cols = ["project", "address_type", *columns]
        placeholders = ",".join(["%s"] * len(insert_cols))
        if columns:
            updates = ",".join(f'"{c}" = EXCLUDED."{c}"' for c in columns)
            conflict = f"DO UPDATE SET {updates}"
        else:
            conflict = "DO NOTHING"
        sql = (
            f"INSERT INTO {SETTINGS_TABLE} ({_quote(insert_cols)}) VALUES ({placeholders}) "
            f"ON CONFLICT (project, address_type) {conflict}"
        )
        params = [project_id, address_type, *(bool(flags[c]) for c in columns)]
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, params)
        except psycopg2.Error as e:
            raise StorageError(str(e).strip()) from e

    @contextmanager
    def transaction(self) -> Iterator[_PostgresTransaction]:
        try:
            cur = self._conn.cursor()
            cur.execute("BEGIN")
        except psycopg2.Error as e:
            raise StorageError(f"failed to begin transaction: {e}") from e
        try:
            yield _PostgresTransaction(cur)
        except BaseException:
            try:
                cur.execute("ROLLBACK")
            except psycopg2.Error:
                # 元の例外を優先して再送出する
                logger.exception("ROLLBACK failed")
            finally:
                cur.close()
            raise
        try:
            cur.execute("COMMIT")
        except psycopg2.Error as e:
            try:
                cur.execute("ROLLBACK")
            except psycopg2.Error:
                logger.exception("ROLLBACK after failed COMMIT failed")
            raise StorageError(f"commit failed: {e}") from e
        finally:
            cur.close()
