"""
Unit tests for DB configuration helpers (no live connection).
"""

import pytest

from core import db


class TestDatabaseUrl:
    def test_missing_url_raises(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError):
            db.database_url()

    def test_sslmode_is_stripped(self, monkeypatch):
        monkeypatch.setenv(
            "DATABASE_URL",
            "postgresql://app:secret@db:5432/citizens?sslmode=disable&application_name=registry",
        )
        assert db.database_url() == "postgresql://app:secret@db:5432/citizens?application_name=registry"


class TestPoolSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DB_POOL_MIN_SIZE", "DB_POOL_MAX_SIZE", "DB_COMMAND_TIMEOUT_S"):
            monkeypatch.delenv(name, raising=False)
        assert db.pool_settings() == (1, 5, 30.0)

    def test_min_never_exceeds_max(self, monkeypatch):
        monkeypatch.setenv("DB_POOL_MIN_SIZE", "10")
        monkeypatch.setenv("DB_POOL_MAX_SIZE", "3")
        monkeypatch.setenv("DB_COMMAND_TIMEOUT_S", "junk")
        assert db.pool_settings() == (3, 3, 30.0)


def test_pool_requires_init():
    with pytest.raises(RuntimeError):
        db.pool()
