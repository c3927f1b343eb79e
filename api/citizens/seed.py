"""
Synthetic citizen data for local development.

Startup calls `seed_if_empty()`; it does nothing unless SEED_DEMO_DATA is set
and the citizens table is empty.

- SEED_DEMO_DATA: "1" to enable
- SEED_COUNT: number of rows to generate (default 5000)
- SEED_RANDOM_SEED: integer seed for reproducible data
"""

from __future__ import annotations

import logging
import os
import random
from collections.abc import Callable
from datetime import date, timedelta

from . import repository, schemas

DEFAULT_SEED_COUNT = 5000
DEATH_DATE_PROBABILITY = 0.2
EARLIEST_BIRTH_DATE = date(1900, 1, 1)

FIRST_NAMES = ("Ivan", "Alex", "Anna", "Pyotr", "Nina", "Lena", "Igor", "Oleg", "Katya")
MIDDLE_NAMES = ("Petrovich", "Ivanoovich", "Dmitrievich")
LAST_NAMES = ("Ivanov", "Petroov", "Pushkin", "Tolstoy")

INN_UPPER_BOUND = 2**31 - 1

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def seed_enabled() -> bool:
    return os.environ.get("SEED_DEMO_DATA", "0").strip().lower() in {"1", "true", "yes"}


def _random_date(rng: random.Random, start: date, end: date) -> date:
    """
    Uniform date in [start, end); `start` when the range is empty.
    """
    span = (end - start).days
    if span <= 0:
        return start
    return start + timedelta(days=rng.randrange(span))


def _unique(rng: random.Random, seen: set[str], make: Callable[[random.Random], str]) -> str:
    while True:
        value = make(rng)
        if value not in seen:
            seen.add(value)
            return value


def _make_snils(rng: random.Random) -> str:
    return f"{rng.randrange(999):03d}-{rng.randrange(999):03d}-{rng.randrange(999):03d} 00"


def _make_inn(rng: random.Random) -> str:
    return f"{rng.randrange(INN_UPPER_BOUND):012d}"


def generate_citizens(count: int, *, rng: random.Random, today: date | None = None) -> list[schemas.Citizen]:
    """
    Build `count` unsaved citizens with unique snils/inn values.
    """
    today = today or date.today()
    seen_snils: set[str] = set()
    seen_inn: set[str] = set()

    citizens: list[schemas.Citizen] = []
    for _ in range(count):
        full_name = f"{rng.choice(LAST_NAMES)} {rng.choice(FIRST_NAMES)} {rng.choice(MIDDLE_NAMES)}"
        birth_date = _random_date(rng, EARLIEST_BIRTH_DATE, today)
        death_date = None
        if rng.random() < DEATH_DATE_PROBABILITY:
            death_date = _random_date(rng, birth_date, today)

        citizens.append(
            schemas.Citizen(
                full_name=full_name,
                snils=_unique(rng, seen_snils, _make_snils),
                inn=_unique(rng, seen_inn, _make_inn),
                birth_date=birth_date,
                death_date=death_date,
            )
        )
    return citizens


async def seed_if_empty() -> int:
    """
    Returns the number of inserted rows (0 when disabled or already populated).
    """
    if not seed_enabled():
        return 0

    existing = await repository.count_citizens()
    if existing > 0:
        logger.info("citizen_seed_skipped existing=%s", existing)
        return 0

    count = _env_int("SEED_COUNT", DEFAULT_SEED_COUNT) or 0
    rng = random.Random(_env_int("SEED_RANDOM_SEED", None))
    inserted = await repository.insert_citizens(generate_citizens(count, rng=rng))
    logger.info("citizen_seed_complete inserted=%s", inserted)
    return inserted
