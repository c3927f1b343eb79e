"""
Citizen API endpoints.

Static routes (/search, /export, /import) are declared before /{citizen_id}
so they are not captured by the id route.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Path, UploadFile
from fastapi.responses import StreamingResponse

from . import dependencies, schemas, service

router = APIRouter(prefix="/api/citizen")

EXPORT_FILENAME = "citizens.csv"

CitizenId = Annotated[int, Path(ge=schemas.ID_MIN, le=schemas.ID_MAX)]


@router.get("/search", response_model=list[schemas.Citizen])
async def search_citizens(
    criteria: schemas.SearchRequest = Depends(dependencies.get_search_request),
) -> list[schemas.Citizen]:
    """
    Filtered search. Always paged (defaults: pageNumber=0, pageSize=10).
    """
    return await service.search_citizens(criteria)


@router.get("/export")
async def export_citizens(
    criteria: schemas.SearchRequest = Depends(dependencies.get_search_request),
) -> StreamingResponse:
    """
    Filtered export as `;`-delimited CSV. Paged only when both
    pageNumber and pageSize are given.
    """
    stream = await service.export_citizens(criteria)
    return StreamingResponse(
        stream,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/import", response_model=schemas.CitizenImportResponse)
async def import_citizens(
    file: UploadFile | None = File(default=None),
    scv_file: UploadFile | None = File(default=None, alias="scvFile"),
) -> schemas.CitizenImportResponse:
    """
    Bulk insert from an uploaded CSV file. All rows are inserted or none.

    The form field may be `file` or `scvFile` (the name older clients send).
    """
    upload = file if file is not None else scv_file
    if upload is None:
        raise HTTPException(
            status_code=422,
            detail="Upload a CSV file in form field 'file' or 'scvFile'.",
        )
    imported = await service.import_upload(upload)
    return schemas.CitizenImportResponse(imported=imported)


@router.get("/{citizen_id}", response_model=schemas.Citizen)
async def get_citizen(citizen_id: CitizenId) -> schemas.Citizen:
    return await service.get_citizen(citizen_id)


@router.post("", response_model=int)
async def create_citizen(citizen: schemas.Citizen) -> int:
    return await service.create_citizen(citizen)


@router.put("/{citizen_id}")
async def update_citizen(citizen_id: CitizenId, citizen: schemas.Citizen) -> dict:
    await service.update_citizen(citizen_id, citizen)
    return {"ok": True}


@router.delete("/{citizen_id}")
async def delete_citizen(citizen_id: CitizenId) -> dict:
    await service.delete_citizen(citizen_id)
    return {"ok": True}
