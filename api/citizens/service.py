"""
Citizen business logic.

Scope:
- keyed CRUD with not-found detection from write results
- filtered search (always paged) and export (paged only on request)
- CSV import as one all-or-nothing batch

Storage failures are logged here with full detail and surfaced to clients
as an opaque 500. Constraint violations (duplicate snils/inn) become 409.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

import asyncpg
from fastapi import HTTPException, UploadFile, status

from . import csv_codec, repository, schemas

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB

logger = logging.getLogger(__name__)


def max_upload_bytes() -> int:
    raw = os.environ.get("MAX_UPLOAD_BYTES", "").strip()
    if not raw:
        return DEFAULT_MAX_UPLOAD_BYTES
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_MAX_UPLOAD_BYTES
    return value if value > 0 else DEFAULT_MAX_UPLOAD_BYTES


@contextmanager
def _storage_errors(action: str, **context: object) -> Iterator[None]:
    """
    Translate storage exceptions raised inside the block into HTTP errors.
    """
    details = " ".join(f"{k}={v}" for k, v in context.items())
    try:
        yield
    except asyncpg.IntegrityConstraintViolationError as exc:
        logger.warning("citizen_constraint_violation action=%s %s error=%s", action, details, exc)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Citizen with the same SNILS or INN already exists.",
        ) from exc
    except Exception as exc:
        logger.exception("citizen_db_error action=%s %s", action, details)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error.",
        ) from exc


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Citizen not found.")


async def get_citizen(citizen_id: int) -> schemas.Citizen:
    with _storage_errors("get", citizen_id=citizen_id):
        row = await repository.get_citizen(citizen_id)
    if row is None:
        raise _not_found()
    return schemas.Citizen.model_validate(row)


async def create_citizen(citizen: schemas.Citizen) -> int:
    citizen = citizen.model_copy(update={"id": schemas.UNASSIGNED_ID})
    with _storage_errors("create"):
        new_id = await repository.insert_citizen(citizen)
    if not new_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Citizen was not assigned an id.",
        )
    logger.info("citizen_created citizen_id=%s", new_id)
    return int(new_id)


async def update_citizen(citizen_id: int, citizen: schemas.Citizen) -> None:
    # The path id wins over whatever the body carries.
    citizen = citizen.model_copy(update={"id": citizen_id})
    with _storage_errors("update", citizen_id=citizen_id):
        updated = await repository.update_citizen(citizen)
    if not updated:
        raise _not_found()


async def delete_citizen(citizen_id: int) -> None:
    with _storage_errors("delete", citizen_id=citizen_id):
        existing = await repository.get_citizen(citizen_id)
    if existing is None:
        raise _not_found()

    with _storage_errors("delete", citizen_id=citizen_id):
        deleted = await repository.delete_citizen(citizen_id)
    if not deleted:
        raise _not_found()
    logger.info("citizen_deleted citizen_id=%s", citizen_id)


async def find_citizens(criteria: schemas.SearchRequest, *, force_paging: bool) -> list[schemas.Citizen]:
    with _storage_errors("find", force_paging=force_paging):
        rows = await repository.find_citizens(criteria, force_paging=force_paging)
    return [schemas.Citizen.model_validate(row) for row in rows]


async def search_citizens(criteria: schemas.SearchRequest) -> list[schemas.Citizen]:
    return await find_citizens(criteria, force_paging=True)


async def export_citizens(criteria: schemas.SearchRequest) -> Iterator[bytes]:
    """
    Run the export query, then hand back a lazy CSV byte stream.

    Rows are loaded before streaming starts, so a storage failure is still a
    proper 500 rather than a truncated download.
    """
    citizens = await find_citizens(criteria, force_paging=False)
    logger.info("citizen_export count=%s", len(citizens))
    return csv_codec.encode(citizens)


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Max is {max_bytes} bytes.",
            )

    return bytes(buf)


async def import_citizens(data: bytes) -> int:
    try:
        citizens = csv_codec.decode(data)
    except csv_codec.CsvDecodeError as exc:
        logger.info("citizen_import_rejected error=%s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Malformed CSV. {exc}",
        ) from exc

    with _storage_errors("import", count=len(citizens)):
        imported = await repository.insert_citizens(citizens)
    logger.info("citizen_import_complete count=%s", imported)
    return imported


async def import_upload(file: UploadFile) -> int:
    data = await read_upload_bytes(file, max_bytes=max_upload_bytes())
    return await import_citizens(data)
