"""Validated building endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from roof_api.config import settings
from roof_api.db.database import get_session
from roof_api.exceptions import ConstraintViolation, DuplicateKey, NotFound
from roof_api.schemas.building import (
    BuildingListResponse,
    MarkManyUploadedRequest,
    MarkManyUploadedResponse,
    MarkUploadedRequest,
    ValidatedBuildingCreate,
    ValidatedBuildingResponse,
    ValidationStatistics,
)
from roof_api.schemas.inference import BoundingBox
from roof_api.services import building_store

router = APIRouter(prefix="/api/buildings", tags=["buildings"])


def _list_response(records) -> BuildingListResponse:
    return BuildingListResponse(
        buildings=[ValidatedBuildingResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.post("", response_model=ValidatedBuildingResponse, status_code=201)
async def create_building(
    body: ValidatedBuildingCreate, session: AsyncSession = Depends(get_session)
):
    try:
        record = await building_store.insert(session, body)
    except DuplicateKey as e:
        raise HTTPException(409, str(e))
    except ConstraintViolation as e:
        raise HTTPException(422, str(e))
    return ValidatedBuildingResponse.model_validate(record)


@router.get("", response_model=BuildingListResponse)
async def list_buildings_in_area(
    min_x: float = Query(..., description="West longitude"),
    min_y: float = Query(..., description="South latitude"),
    max_x: float = Query(..., description="East longitude"),
    max_y: float = Query(..., description="North latitude"),
    order_by: str | None = None,
    session: AsyncSession = Depends(get_session),
):
    bbox = BoundingBox(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)
    try:
        records = await building_store.find_by_location(session, bbox, order_by=order_by)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return _list_response(records)


@router.get("/pending", response_model=BuildingListResponse)
async def list_pending_upload(
    limit: int = Query(None, ge=1, le=1000),
    session: AsyncSession = Depends(get_session),
):
    records = await building_store.find_pending_upload(
        session, limit=limit or settings.pending_upload_limit
    )
    return _list_response(records)


@router.get("/recent", response_model=BuildingListResponse)
async def list_recent(
    limit: int = Query(None, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
):
    records = await building_store.recent(session, limit=limit or settings.recent_limit)
    return _list_response(records)


@router.get("/stats", response_model=ValidationStatistics)
async def validation_stats(session: AsyncSession = Depends(get_session)):
    return await building_store.statistics(session)


@router.get("/{osm_id}", response_model=ValidatedBuildingResponse)
async def get_building(osm_id: int, session: AsyncSession = Depends(get_session)):
    record = await building_store.find_by_osm_id(session, osm_id)
    if not record:
        raise HTTPException(404, "Building not validated")
    return ValidatedBuildingResponse.model_validate(record)


@router.post("/{building_id}/uploaded", response_model=ValidatedBuildingResponse)
async def mark_uploaded(
    building_id: int,
    body: MarkUploadedRequest | None = None,
    session: AsyncSession = Depends(get_session),
):
    changeset_id = body.changeset_id if body else None
    try:
        record = await building_store.mark_uploaded(session, building_id, changeset_id)
    except NotFound as e:
        raise HTTPException(404, str(e))
    return ValidatedBuildingResponse.model_validate(record)


@router.post("/uploaded", response_model=MarkManyUploadedResponse)
async def mark_many_uploaded(
    body: MarkManyUploadedRequest, session: AsyncSession = Depends(get_session)
):
    updated = await building_store.mark_uploaded_many(
        session, body.building_ids, body.changeset_id
    )
    return MarkManyUploadedResponse(updated=updated)
