import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "scripts"))

from import_validations import import_validations, row_to_record  # noqa: E402

from roof_api.db.database import make_engine, make_session_factory  # noqa: E402
from roof_api.services import building_store  # noqa: E402

CSV = """osm_id,latitude,longitude,roof_color_hex,validation_method,validated_by,ai_confidence,original_osm_tags,notes
1001,59.3293235,18.0685808,#B43232,llm,mapper42,0.91,"{""building"": ""house""}",
1002,59.3300000,18.0700000,#505050,manual,mapper42,,,flat roof
1001,59.3293235,18.0685808,#FFFFFF,manual,someone,,,
1003,59.3310000,18.0710000,not-a-color,manual,mapper42,,,
"""


def test_row_to_record_drops_empty_cells():
    record = row_to_record({
        "osm_id": 12.0,
        "notes": float("nan"),
        "original_osm_tags": '{"roof:shape": "gabled"}',
    })
    assert record == {"osm_id": 12, "original_osm_tags": {"roof:shape": "gabled"}}


def test_import_counts_outcomes(tmp_path, db_url):
    csv_path = tmp_path / "validations.csv"
    csv_path.write_text(CSV)

    stats = asyncio.run(import_validations(str(csv_path), db_url))
    assert stats == {"inserted": 2, "duplicates": 1, "invalid": 1}

    async def _check():
        engine = make_engine(db_url)
        Session = make_session_factory(engine)
        try:
            async with Session() as session:
                first = await building_store.find_by_osm_id(session, 1001)
                assert first.roof_color_hex == "#B43232"
                assert first.original_osm_tags == {"building": "house"}

                second = await building_store.find_by_osm_id(session, 1002)
                assert second.notes == "flat roof"
                assert second.ai_confidence is None
        finally:
            await engine.dispose()

    asyncio.run(_check())
