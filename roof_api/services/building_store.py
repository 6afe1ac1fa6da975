"""Durable store for human-validated roof colors.

One row per OSM building. Uniqueness of osm_id is enforced by the database
index inside the insert transaction; the store never checks-then-writes and
never retries. Failures surface as DuplicateKey / ConstraintViolation / NotFound.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from roof_api.db.models import ValidatedBuilding
from roof_api.exceptions import ConstraintViolation, DuplicateKey, NotFound
from roof_api.schemas.building import ValidatedBuildingCreate, ValidationStatistics
from roof_api.schemas.inference import BoundingBox
from roof_api.services.palette import hex_to_rgb, map_to_standard_color

logger = logging.getLogger(__name__)

_LOCATION_ORDERINGS = {
    "validated_at": (ValidatedBuilding.validated_at, ValidatedBuilding.id),
    "-validated_at": (ValidatedBuilding.validated_at.desc(), ValidatedBuilding.id.desc()),
    "osm_id": (ValidatedBuilding.osm_id,),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _coerce_create(data: ValidatedBuildingCreate | Mapping) -> ValidatedBuildingCreate:
    if isinstance(data, ValidatedBuildingCreate):
        return data
    try:
        return ValidatedBuildingCreate.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err["loc"]) or "record"
        raise ConstraintViolation(field, err["msg"]) from e


async def insert(
    session: AsyncSession, data: ValidatedBuildingCreate | Mapping
) -> ValidatedBuilding:
    """Persist a new validated building and return it with generated fields."""
    data = _coerce_create(data)
    values = data.model_dump(exclude_none=True)

    if "color_description" not in values:
        values["color_description"], _ = map_to_standard_color(hex_to_rgb(data.roof_color_hex))

    record = ValidatedBuilding(**values)
    session.add(record)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        if await is_validated(session, data.osm_id):
            logger.info("Duplicate validation for osm_id %d rejected", data.osm_id)
            raise DuplicateKey(data.osm_id) from e
        raise ConstraintViolation("record", str(e.orig)) from e

    await session.refresh(record)
    logger.debug("Stored validation id=%d osm_id=%d", record.id, record.osm_id)
    return record


async def find_by_osm_id(session: AsyncSession, osm_id: int) -> ValidatedBuilding | None:
    result = await session.execute(
        select(ValidatedBuilding).where(ValidatedBuilding.osm_id == osm_id)
    )
    return result.scalar_one_or_none()


async def is_validated(session: AsyncSession, osm_id: int) -> bool:
    result = await session.execute(
        select(func.count()).where(ValidatedBuilding.osm_id == osm_id)
    )
    return (result.scalar() or 0) > 0


async def find_by_location(
    session: AsyncSession, bbox: BoundingBox, order_by: str | None = None
) -> list[ValidatedBuilding]:
    """Buildings inside bbox (x = longitude, y = latitude), unordered by default."""
    query = select(ValidatedBuilding).where(
        ValidatedBuilding.latitude.between(bbox.min_y, bbox.max_y),
        ValidatedBuilding.longitude.between(bbox.min_x, bbox.max_x),
    )
    if order_by is not None:
        if order_by not in _LOCATION_ORDERINGS:
            raise ValueError(
                f"Unsupported order_by {order_by!r}, expected one of {sorted(_LOCATION_ORDERINGS)}"
            )
        query = query.order_by(*_LOCATION_ORDERINGS[order_by])

    result = await session.execute(query)
    return list(result.scalars().all())


async def find_pending_upload(
    session: AsyncSession, limit: int | None = None
) -> list[ValidatedBuilding]:
    """Records not yet uploaded, oldest validation first."""
    query = (
        select(ValidatedBuilding)
        .where(ValidatedBuilding.uploaded_to_osm.is_(False))
        .order_by(ValidatedBuilding.validated_at, ValidatedBuilding.id)
    )
    if limit is not None:
        query = query.limit(limit)
    result = await session.execute(query)
    return list(result.scalars().all())


async def mark_uploaded(
    session: AsyncSession, building_id: int, changeset_id: int | None = None
) -> ValidatedBuilding:
    """Flag a record as uploaded. Repeated calls are no-ops."""
    result = await session.execute(
        update(ValidatedBuilding)
        .where(
            ValidatedBuilding.id == building_id,
            ValidatedBuilding.uploaded_to_osm.is_(False),
        )
        .values(uploaded_to_osm=True, uploaded_at=_utcnow(), osm_changeset_id=changeset_id)
        .execution_options(synchronize_session=False)
    )
    await session.commit()

    record = await session.get(ValidatedBuilding, building_id, populate_existing=True)
    if record is None:
        raise NotFound(f"Validated building {building_id} not found")
    if result.rowcount == 0:
        logger.debug("Building %d already marked uploaded", building_id)
    return record


async def mark_uploaded_many(
    session: AsyncSession, building_ids: list[int], changeset_id: int | None = None
) -> int:
    """Flag every listed record of one changeset as uploaded.

    Returns how many records changed. Unknown ids and records already
    uploaded are skipped, so a repeated call returns 0.
    """
    if not building_ids:
        return 0
    result = await session.execute(
        update(ValidatedBuilding)
        .where(
            ValidatedBuilding.id.in_(building_ids),
            ValidatedBuilding.uploaded_to_osm.is_(False),
        )
        .values(uploaded_to_osm=True, uploaded_at=_utcnow(), osm_changeset_id=changeset_id)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    logger.info(
        "Marked %d of %d building(s) uploaded in changeset %s",
        result.rowcount, len(building_ids), changeset_id,
    )
    return result.rowcount


async def recent(session: AsyncSession, limit: int = 20) -> list[ValidatedBuilding]:
    result = await session.execute(
        select(ValidatedBuilding)
        .order_by(ValidatedBuilding.validated_at.desc(), ValidatedBuilding.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def statistics(session: AsyncSession) -> ValidationStatistics:
    today = _utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = today - timedelta(days=7)

    async def _count(*where) -> int:
        query = select(func.count()).select_from(ValidatedBuilding)
        if where:
            query = query.where(*where)
        return (await session.execute(query)).scalar() or 0

    total = await _count()
    pending = await _count(ValidatedBuilding.uploaded_to_osm.is_(False))

    method_row = (await session.execute(
        select(ValidatedBuilding.validation_method, func.count().label("n"))
        .group_by(ValidatedBuilding.validation_method)
        .order_by(func.count().desc(), ValidatedBuilding.validation_method)
        .limit(1)
    )).first()

    avg_confidence = (await session.execute(
        select(func.avg(ValidatedBuilding.ai_confidence))
    )).scalar()

    return ValidationStatistics(
        total_validated=total,
        pending_upload=pending,
        uploaded_to_osm=total - pending,
        validated_today=await _count(ValidatedBuilding.validated_at >= today),
        validated_this_week=await _count(ValidatedBuilding.validated_at >= week_ago),
        most_common_method=method_row[0] if method_row else None,
        average_ai_confidence=float(avg_confidence) if avg_confidence is not None else None,
    )
