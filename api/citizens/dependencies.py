"""
Query-string binding for citizen search/export routes.
"""

from __future__ import annotations

from datetime import date

from fastapi import Query

from . import schemas


async def get_search_request(
    full_name: str | None = Query(default=None, alias="fullName", max_length=schemas.FULL_NAME_MAX_LENGTH),
    snils: str | None = Query(default=None, max_length=schemas.SNILS_LENGTH),
    inn: str | None = Query(default=None, max_length=schemas.INN_LENGTH),
    birth_date: date | None = Query(default=None, alias="birthDate"),
    death_date: date | None = Query(default=None, alias="deathDate"),
    page_number: int | None = Query(default=None, alias="pageNumber", ge=0),
    page_size: int | None = Query(default=None, alias="pageSize", ge=0),
) -> schemas.SearchRequest:
    return schemas.SearchRequest(
        full_name=full_name,
        snils=snils,
        inn=inn,
        birth_date=birth_date,
        death_date=death_date,
        page_number=page_number,
        page_size=page_size,
    )
