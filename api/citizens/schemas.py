"""
Citizen API schemas (record + search request).

Wire names are camelCase (`fullName`, `birthDate`, ...); Python code uses
snake_case attributes. Rows from Postgres (snake_case keys) validate
directly because `populate_by_name` is on.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Unassigned sentinel: a citizen with this id has not been persisted yet.
UNASSIGNED_ID = 0

FULL_NAME_MAX_LENGTH = 256
SNILS_LENGTH = 14
INN_LENGTH = 12

# Range of the BIGSERIAL primary key.
ID_MIN = -(2**63)
ID_MAX = 2**63 - 1


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Citizen(_CamelModel):
    id: int = UNASSIGNED_ID
    full_name: str = Field(..., min_length=1, max_length=FULL_NAME_MAX_LENGTH)
    # SNILS is "XXX-XXX-XXX YY" and INN is 12 digits; only length is checked.
    snils: str | None = Field(default=None, min_length=SNILS_LENGTH, max_length=SNILS_LENGTH)
    inn: str | None = Field(default=None, min_length=INN_LENGTH, max_length=INN_LENGTH)
    birth_date: date
    death_date: date | None = None

    @field_validator("full_name", mode="before")
    @classmethod
    def _trim_full_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


class SearchRequest(_CamelModel):
    """
    Optional search criteria. Strings are prefixes, dates are exact matches.
    Absent fields impose no filter.
    """

    full_name: str | None = Field(default=None, max_length=FULL_NAME_MAX_LENGTH)
    snils: str | None = Field(default=None, max_length=SNILS_LENGTH)
    inn: str | None = Field(default=None, max_length=INN_LENGTH)
    birth_date: date | None = None
    death_date: date | None = None
    page_number: int | None = Field(default=None, ge=0)
    page_size: int | None = Field(default=None, ge=0)

    @field_validator("full_name", mode="before")
    @classmethod
    def _trim_full_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("snils", "inn", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value:
            return None
        return value


class CitizenImportResponse(BaseModel):
    imported: int
