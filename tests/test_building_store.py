import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from roof_api.db.models import ValidatedBuilding
from roof_api.exceptions import ConstraintViolation, DuplicateKey, NotFound
from roof_api.schemas.building import ValidatedBuildingCreate
from roof_api.schemas.inference import BoundingBox
from roof_api.services import building_store


def test_insert_assigns_id_and_defaults(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                record = await building_store.insert(session, building_payload())

                assert record.id is not None
                assert record.osm_id == 123456789
                assert record.uploaded_to_osm is False
                assert record.uploaded_at is None
                assert isinstance(record.validated_at, datetime)
                # description filled from the nearest palette color
                assert record.color_description == "red"

    asyncio.run(_run())


def test_insert_accepts_schema_instance(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                data = ValidatedBuildingCreate(**building_payload(color_description="weathered clay"))
                record = await building_store.insert(session, data)
                assert record.color_description == "weathered clay"

    asyncio.run(_run())


def test_coordinates_stored_with_seven_decimals(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                await building_store.insert(
                    session, building_payload(latitude=59.329323512345, longitude=18.068580849999)
                )
            async with Session() as session:
                record = await building_store.find_by_osm_id(session, 123456789)
                assert record.latitude == pytest.approx(59.3293235, abs=1e-9)
                assert record.longitude == pytest.approx(18.0685808, abs=1e-9)

    asyncio.run(_run())


def test_duplicate_osm_id_rejected(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                await building_store.insert(session, building_payload())
                with pytest.raises(DuplicateKey) as exc:
                    await building_store.insert(session, building_payload(roof_color_hex="#FFFFFF"))
                assert exc.value.osm_id == 123456789

                # session still usable and the original row untouched
                record = await building_store.find_by_osm_id(session, 123456789)
                assert record.roof_color_hex == "#B43232"

    asyncio.run(_run())


def test_concurrent_inserts_same_osm_id(open_db, building_payload):
    async def _run():
        async with open_db() as Session:

            async def attempt(color):
                async with Session() as session:
                    try:
                        await building_store.insert(
                            session, building_payload(osm_id=42, roof_color_hex=color)
                        )
                        return "ok"
                    except DuplicateKey:
                        return "duplicate"

            results = await asyncio.gather(attempt("#AA0000"), attempt("#00AA00"))
            assert sorted(results) == ["duplicate", "ok"]

            async with Session() as session:
                count = (await session.execute(
                    select(func.count()).where(ValidatedBuilding.osm_id == 42)
                )).scalar()
                assert count == 1

    asyncio.run(_run())


@pytest.mark.parametrize(
    "field, value",
    [
        ("roof_color_hex", "red"),
        ("roof_color_hex", "#B4323"),
        ("roof_color_hex", "#GGGGGG"),
        ("osm_type", "x" * 21),
        ("validation_method", "m" * 21),
        ("color_description", "d" * 101),
        ("picked_pixel_coordinates", "1" * 51),
        ("building_type", "b" * 51),
        ("validated_by", "v" * 101),
        ("notes", "n" * 501),
        ("previous_roof_color", "p" * 101),
    ],
)
def test_constraint_violations(open_db, building_payload, field, value):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                with pytest.raises(ConstraintViolation) as exc:
                    await building_store.insert(session, building_payload(**{field: value}))
                assert exc.value.field == field
                assert await building_store.find_by_osm_id(session, 123456789) is None

    asyncio.run(_run())


def test_orm_model_enforces_invariants_on_construction():
    with pytest.raises(ConstraintViolation):
        ValidatedBuilding(osm_id=1, roof_color_hex="red", validation_method="manual",
                          latitude=0.0, longitude=0.0)
    with pytest.raises(ConstraintViolation):
        ValidatedBuilding(osm_id=1, roof_color_hex="#000000", validation_method="manual",
                          notes="n" * 501, latitude=0.0, longitude=0.0)

    ok = ValidatedBuilding(osm_id=1, roof_color_hex="#000000", validation_method="pixel-pick",
                           picked_pixel_coordinates="12,40", latitude=1.123456789, longitude=2.0)
    assert ok.latitude == pytest.approx(1.1234568)


def test_bounded_fields_accept_exact_limit(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                record = await building_store.insert(
                    session, building_payload(notes="n" * 500, osm_type="t" * 20)
                )
                assert len(record.notes) == 500

    asyncio.run(_run())


def test_find_by_osm_id_miss_returns_none(open_db):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                assert await building_store.find_by_osm_id(session, 999) is None
                assert await building_store.is_validated(session, 999) is False

    asyncio.run(_run())


def test_find_by_location(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                await building_store.insert(session, building_payload(osm_id=1, latitude=59.33, longitude=18.06))
                await building_store.insert(session, building_payload(osm_id=2, latitude=59.34, longitude=18.07))
                await building_store.insert(session, building_payload(osm_id=3, latitude=57.70, longitude=11.97))

                bbox = BoundingBox(min_x=18.0, min_y=59.0, max_x=18.1, max_y=59.5)
                found = await building_store.find_by_location(session, bbox)
                assert {r.osm_id for r in found} == {1, 2}

                ordered = await building_store.find_by_location(session, bbox, order_by="osm_id")
                assert [r.osm_id for r in ordered] == [1, 2]

                empty = BoundingBox(min_x=0.0, min_y=0.0, max_x=1.0, max_y=1.0)
                assert await building_store.find_by_location(session, empty) == []

                with pytest.raises(ValueError):
                    await building_store.find_by_location(session, bbox, order_by="color")

    asyncio.run(_run())


def test_pending_upload_is_fifo(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                await building_store.insert(session, building_payload(osm_id=10, validated_at=datetime(2024, 5, 3)))
                await building_store.insert(session, building_payload(osm_id=11, validated_at=datetime(2024, 5, 1)))
                await building_store.insert(session, building_payload(osm_id=12, validated_at=datetime(2024, 5, 2)))

                pending = await building_store.find_pending_upload(session)
                assert [r.osm_id for r in pending] == [11, 12, 10]

                await building_store.mark_uploaded(session, pending[0].id)
                pending = await building_store.find_pending_upload(session)
                assert [r.osm_id for r in pending] == [12, 10]

                limited = await building_store.find_pending_upload(session, limit=1)
                assert [r.osm_id for r in limited] == [12]

    asyncio.run(_run())


def test_pending_upload_orders_aware_and_naive_timestamps(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                await building_store.insert(
                    session, building_payload(osm_id=1, validated_at=datetime(2024, 5, 1, 6, 0))
                )
                plus_five = timezone(timedelta(hours=5))
                await building_store.insert(
                    session,
                    building_payload(osm_id=2, validated_at=datetime(2024, 5, 1, 10, 0, tzinfo=plus_five)),
                )

                pending = await building_store.find_pending_upload(session)
                assert [r.osm_id for r in pending] == [2, 1]
                assert pending[0].validated_at == datetime(2024, 5, 1, 5, 0)

    asyncio.run(_run())


def test_create_schema_normalizes_aware_timestamp(building_payload):
    data = ValidatedBuildingCreate(
        **building_payload(validated_at="2024-05-01T10:00:00+05:00")
    )
    assert data.validated_at == datetime(2024, 5, 1, 5, 0)
    assert data.validated_at.tzinfo is None


def test_mark_uploaded_many(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                ids = []
                for osm_id in (1, 2, 3):
                    record = await building_store.insert(session, building_payload(osm_id=osm_id))
                    ids.append(record.id)

                updated = await building_store.mark_uploaded_many(session, ids[:2] + [9999], changeset_id=31)
                assert updated == 2

                # same changeset again changes nothing
                assert await building_store.mark_uploaded_many(session, ids[:2], changeset_id=32) == 0
                assert await building_store.mark_uploaded_many(session, []) == 0

                pending = await building_store.find_pending_upload(session)
                assert [r.osm_id for r in pending] == [3]

                first = await building_store.find_by_osm_id(session, 1)
                await session.refresh(first)
                assert first.uploaded_to_osm is True
                assert first.osm_changeset_id == 31
                assert first.uploaded_at is not None

    asyncio.run(_run())


def test_mark_uploaded_is_idempotent(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                record = await building_store.insert(session, building_payload())

                first = await building_store.mark_uploaded(session, record.id, changeset_id=555)
                assert first.uploaded_to_osm is True
                assert first.osm_changeset_id == 555
                uploaded_at = first.uploaded_at
                assert uploaded_at is not None

                second = await building_store.mark_uploaded(session, record.id, changeset_id=777)
                assert second.uploaded_to_osm is True
                assert second.osm_changeset_id == 555
                assert second.uploaded_at == uploaded_at

    asyncio.run(_run())


def test_concurrent_mark_uploaded(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                record = await building_store.insert(session, building_payload())

            async def retry():
                async with Session() as session:
                    return await building_store.mark_uploaded(session, record.id)

            results = await asyncio.gather(retry(), retry(), retry())
            assert all(r.uploaded_to_osm for r in results)

            async with Session() as session:
                stats = await building_store.statistics(session)
                assert stats.uploaded_to_osm == 1
                assert stats.pending_upload == 0

    asyncio.run(_run())


def test_mark_uploaded_unknown_id(open_db):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                with pytest.raises(NotFound):
                    await building_store.mark_uploaded(session, 404)

    asyncio.run(_run())


def test_recent_newest_first(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                for i, day in enumerate([1, 3, 2]):
                    await building_store.insert(
                        session, building_payload(osm_id=100 + i, validated_at=datetime(2024, 6, day))
                    )
                latest = await building_store.recent(session, limit=2)
                assert [r.osm_id for r in latest] == [101, 102]

    asyncio.run(_run())


def test_statistics(open_db, building_payload):
    async def _run():
        async with open_db() as Session:
            async with Session() as session:
                empty = await building_store.statistics(session)
                assert empty.total_validated == 0
                assert empty.most_common_method is None
                assert empty.average_ai_confidence is None

                await building_store.insert(session, building_payload(osm_id=1, validation_method="llm", ai_confidence=0.6))
                await building_store.insert(session, building_payload(osm_id=2, validation_method="llm", ai_confidence=0.8))
                third = await building_store.insert(
                    session,
                    building_payload(osm_id=3, validation_method="manual", ai_confidence=None,
                                     validated_at=datetime(2020, 1, 1)),
                )
                await building_store.mark_uploaded(session, third.id)

                stats = await building_store.statistics(session)
                assert stats.total_validated == 3
                assert stats.pending_upload == 2
                assert stats.uploaded_to_osm == 1
                assert stats.validated_today == 2
                assert stats.validated_this_week == 2
                assert stats.most_common_method == "llm"
                assert stats.average_ai_confidence == pytest.approx(0.7)

    asyncio.run(_run())
