"""
Citizen persistence (raw SQL).

Table layout is created on startup by `ensure_schema()`; there is no
migration tool. Uniqueness of snils/inn is enforced by Postgres, not here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import asyncpg

from core import db

from . import filters, schemas

SCHEMA_SQL = (
    """
    CREATE TABLE IF NOT EXISTS citizens (
        id          BIGSERIAL PRIMARY KEY,
        full_name   VARCHAR(256) NOT NULL,
        snils       VARCHAR(14),
        inn         VARCHAR(12),
        birth_date  DATE NOT NULL,
        death_date  DATE
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_citizens_full_name ON citizens (full_name text_pattern_ops)",
    "CREATE UNIQUE INDEX IF NOT EXISTS ux_citizens_snils ON citizens (snils)",
    "CREATE UNIQUE INDEX IF NOT EXISTS ux_citizens_inn ON citizens (inn)",
    "CREATE INDEX IF NOT EXISTS ix_citizens_birth_date ON citizens (birth_date)",
    "CREATE INDEX IF NOT EXISTS ix_citizens_death_date ON citizens (death_date)",
)


def _citizen_args(citizen: schemas.Citizen) -> tuple[Any, ...]:
    return (
        citizen.full_name,
        citizen.snils,
        citizen.inn,
        citizen.birth_date,
        citizen.death_date,
    )


async def ensure_schema() -> None:
    pool = db.pool()
    async with pool.acquire() as conn:  # type: asyncpg.Connection
        async with conn.transaction():
            for statement in SCHEMA_SQL:
                await conn.execute(statement)


async def count_citizens() -> int:
    value = await db.fetch_value("SELECT count(*) FROM citizens")
    return int(value or 0)


async def get_citizen(citizen_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {filters.CITIZEN_COLUMNS}
        FROM citizens
        WHERE id = $1
        """,
        citizen_id,
    )


async def insert_citizen(citizen: schemas.Citizen) -> int | None:
    """
    Insert one citizen and return the id assigned by Postgres.
    """
    row = await db.fetch_one(
        """
        INSERT INTO citizens (full_name, snils, inn, birth_date, death_date)
        VALUES ($1, $2, $3, $4, $5)
        RETURNING id
        """,
        *_citizen_args(citizen),
    )
    if row is None:
        return None
    return row.get("id")


async def update_citizen(citizen: schemas.Citizen) -> bool:
    """
    Full replace of the row with `citizen.id`. False when no row matched.
    """
    row = await db.fetch_one(
        """
        UPDATE citizens
        SET full_name = $2,
            snils = $3,
            inn = $4,
            birth_date = $5,
            death_date = $6
        WHERE id = $1
        RETURNING id
        """,
        citizen.id,
        *_citizen_args(citizen),
    )
    return row is not None


async def delete_citizen(citizen_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM citizens
        WHERE id = $1
        RETURNING id
        """,
        citizen_id,
    )
    return row is not None


async def find_citizens(criteria: schemas.SearchRequest, *, force_paging: bool) -> list[dict[str, Any]]:
    sql, args = filters.build_search_query(criteria, force_paging=force_paging)
    return await db.fetch_all(sql, *args)


async def insert_citizens(citizens: Sequence[schemas.Citizen]) -> int:
    """
    Bulk insert in a single transaction: either every row lands or none do.

    Returns the number of inserted rows.
    """
    if not citizens:
        return 0

    records = [_citizen_args(c) for c in citizens]

    pool = db.pool()
    async with pool.acquire() as conn:  # type: asyncpg.Connection
        async with conn.transaction():
            await conn.executemany(
                """
                INSERT INTO citizens (full_name, snils, inn, birth_date, death_date)
                VALUES ($1, $2, $3, $4, $5)
                """,
                records,
            )
    return len(records)
