"""
Shared fixtures.

The repository layer is swapped for an in-memory store so tests run without
Postgres. The store mimics the behaviors the service relies on: id
assignment, unique snils/inn, RETURNING-style booleans, ordered paging, and
all-or-nothing bulk insert.
"""

from datetime import date

import asyncpg
import pytest
from fastapi.testclient import TestClient

from citizens import filters, repository, schemas


class FakeCitizenStore:
    """In-memory stand-in for citizens.repository."""

    def __init__(self):
        self.rows = {}
        self.next_id = 1

    def _check_unique(self, citizen, *, others):
        for row in others:
            if row["id"] == citizen.id:
                continue
            if citizen.snils is not None and row["snils"] == citizen.snils:
                raise asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
            if citizen.inn is not None and row["inn"] == citizen.inn:
                raise asyncpg.UniqueViolationError("duplicate key value violates unique constraint")

    def _to_row(self, citizen, citizen_id):
        return {
            "id": citizen_id,
            "full_name": citizen.full_name,
            "snils": citizen.snils,
            "inn": citizen.inn,
            "birth_date": citizen.birth_date,
            "death_date": citizen.death_date,
        }

    async def count_citizens(self):
        return len(self.rows)

    async def get_citizen(self, citizen_id):
        row = self.rows.get(citizen_id)
        return dict(row) if row is not None else None

    async def insert_citizen(self, citizen):
        self._check_unique(citizen, others=self.rows.values())
        citizen_id = self.next_id
        self.next_id += 1
        self.rows[citizen_id] = self._to_row(citizen, citizen_id)
        return citizen_id

    async def update_citizen(self, citizen):
        if citizen.id not in self.rows:
            return False
        self._check_unique(citizen, others=self.rows.values())
        self.rows[citizen.id] = self._to_row(citizen, citizen.id)
        return True

    async def delete_citizen(self, citizen_id):
        return self.rows.pop(citizen_id, None) is not None

    async def find_citizens(self, criteria, *, force_paging):
        def matches(row):
            for column in filters.PREFIX_COLUMNS:
                value = getattr(criteria, column)
                if value is not None and not (row[column] or "").startswith(value):
                    return False
            for column in filters.EXACT_COLUMNS:
                value = getattr(criteria, column)
                if value is not None and row[column] != value:
                    return False
            return True

        found = [dict(row) for _, row in sorted(self.rows.items()) if matches(row)]
        page = filters.resolve_page(criteria, force_paging=force_paging)
        if page is None:
            return found
        return found[page.offset:page.offset + page.limit]

    async def insert_citizens(self, citizens):
        staged = []
        for citizen in citizens:
            self._check_unique(citizen, others=[*self.rows.values(), *staged])
            staged.append(self._to_row(citizen, -1 - len(staged)))
        for row in staged:
            row["id"] = self.next_id
            self.rows[self.next_id] = row
            self.next_id += 1
        return len(staged)


@pytest.fixture
def store(monkeypatch):
    fake = FakeCitizenStore()
    for name in (
        "count_citizens",
        "get_citizen",
        "insert_citizen",
        "update_citizen",
        "delete_citizen",
        "find_citizens",
        "insert_citizens",
    ):
        monkeypatch.setattr(repository, name, getattr(fake, name))
    return fake


@pytest.fixture
def client(store):
    from main import app

    # No context manager: lifespan (DB pool, schema) is not started.
    return TestClient(app)


def make_citizen(full_name="Ivanov Ivan Petrovich", snils=None, inn=None, **kwargs):
    return schemas.Citizen(
        full_name=full_name,
        snils=snils,
        inn=inn,
        birth_date=kwargs.pop("birth_date", date(1980, 5, 17)),
        **kwargs,
    )
