"""
Search filter evaluation: turns a SearchRequest into parameterized SQL.

Each optional criterion becomes one condition; conditions are ANDed.
- strings (full_name, snils, inn): prefix match via LIKE with the user value
  escaped, so `%` and `_` are matched literally
- dates (birth_date, death_date): exact match

Paging:
- defaults are page_number=0, page_size=10
- paging applies when forced, or when the caller supplied both
  page_number and page_size
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from . import schemas

DEFAULT_PAGE_NUMBER = 0
DEFAULT_PAGE_SIZE = 10

CITIZEN_COLUMNS = "id, full_name, snils, inn, birth_date, death_date"

PREFIX_COLUMNS = ("full_name", "snils", "inn")
EXACT_COLUMNS = ("birth_date", "death_date")


@dataclass(frozen=True)
class Page:
    offset: int
    limit: int


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_predicate(criteria: schemas.SearchRequest) -> tuple[str, list[Any]]:
    """
    Returns (where_sql, args). Placeholders start at $1.
    """
    conditions: list[str] = []
    args: list[Any] = []

    for column in PREFIX_COLUMNS:
        value = getattr(criteria, column)
        if value is None:
            continue
        args.append(escape_like(value) + "%")
        conditions.append(f"{column} LIKE ${len(args)} ESCAPE '\\'")

    for column in EXACT_COLUMNS:
        value = getattr(criteria, column)
        if value is None:
            continue
        args.append(value)
        conditions.append(f"{column} = ${len(args)}")

    if not conditions:
        return "TRUE", args
    return " AND ".join(conditions), args


def resolve_page(criteria: schemas.SearchRequest, *, force_paging: bool) -> Page | None:
    """
    Returns the page to apply, or None when the full match set is wanted.
    """
    explicit = criteria.page_number is not None and criteria.page_size is not None
    if not (force_paging or explicit):
        return None

    number = criteria.page_number if criteria.page_number is not None else DEFAULT_PAGE_NUMBER
    size = criteria.page_size if criteria.page_size is not None else DEFAULT_PAGE_SIZE
    # Postgres rejects negative LIMIT/OFFSET.
    number = max(number, 0)
    size = max(size, 0)
    return Page(offset=number * size, limit=size)


def build_search_query(criteria: schemas.SearchRequest, *, force_paging: bool) -> tuple[str, list[Any]]:
    where_sql, args = build_predicate(criteria)
    sql = f"SELECT {CITIZEN_COLUMNS} FROM citizens WHERE {where_sql} ORDER BY id"

    page = resolve_page(criteria, force_paging=force_paging)
    if page is not None:
        args = [*args, page.limit, page.offset]
        sql += f" LIMIT ${len(args) - 1} OFFSET ${len(args)}"

    return sql, args
