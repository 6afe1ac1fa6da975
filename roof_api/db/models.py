"""ORM models: validated_buildings."""

import re
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, validates
from sqlalchemy.sql import func

from roof_api.db.database import Base
from roof_api.exceptions import ConstraintViolation

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
COORDINATE_SCALE = 7

# Max lengths of the bounded string columns
OSM_TYPE_LENGTH = 20
ROOF_COLOR_HEX_LENGTH = 7
COLOR_DESCRIPTION_LENGTH = 100
VALIDATION_METHOD_LENGTH = 20
PICKED_PIXEL_LENGTH = 50
BUILDING_TYPE_LENGTH = 50
VALIDATED_BY_LENGTH = 100
NOTES_LENGTH = 500
PREVIOUS_ROOF_COLOR_LENGTH = 100

_BOUNDED_FIELDS = {
    "osm_type": OSM_TYPE_LENGTH,
    "color_description": COLOR_DESCRIPTION_LENGTH,
    "validation_method": VALIDATION_METHOD_LENGTH,
    "picked_pixel_coordinates": PICKED_PIXEL_LENGTH,
    "building_type": BUILDING_TYPE_LENGTH,
    "validated_by": VALIDATED_BY_LENGTH,
    "notes": NOTES_LENGTH,
    "previous_roof_color": PREVIOUS_ROOF_COLOR_LENGTH,
}
_REQUIRED_TEXT = {"osm_type", "validation_method"}
_hex_re = re.compile(HEX_COLOR_PATTERN)


class ValidatedBuilding(Base):
    __tablename__ = "validated_buildings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    osm_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    osm_type: Mapped[str] = mapped_column(String(OSM_TYPE_LENGTH), nullable=False, default="way")
    roof_color_hex: Mapped[str] = mapped_column(String(ROOF_COLOR_HEX_LENGTH), nullable=False)
    color_description: Mapped[str | None] = mapped_column(String(COLOR_DESCRIPTION_LENGTH))
    validation_method: Mapped[str] = mapped_column(String(VALIDATION_METHOD_LENGTH), nullable=False)
    ai_confidence: Mapped[float | None] = mapped_column(Float)
    picked_pixel_coordinates: Mapped[str | None] = mapped_column(String(PICKED_PIXEL_LENGTH))
    latitude: Mapped[float] = mapped_column(
        Numeric(10, COORDINATE_SCALE, asdecimal=False), nullable=False
    )
    longitude: Mapped[float] = mapped_column(
        Numeric(10, COORDINATE_SCALE, asdecimal=False), nullable=False
    )
    building_type: Mapped[str | None] = mapped_column(String(BUILDING_TYPE_LENGTH))
    validated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    validated_by: Mapped[str | None] = mapped_column(String(VALIDATED_BY_LENGTH))
    uploaded_to_osm: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    uploaded_at: Mapped[datetime | None] = mapped_column(DateTime)
    osm_changeset_id: Mapped[int | None] = mapped_column(BigInteger)
    notes: Mapped[str | None] = mapped_column(String(NOTES_LENGTH))
    original_osm_tags: Mapped[dict | None] = mapped_column(JSON)
    had_existing_roof_color: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    previous_roof_color: Mapped[str | None] = mapped_column(String(PREVIOUS_ROOF_COLOR_LENGTH))

    __table_args__ = (
        Index("uq_validated_buildings_osm_id", "osm_id", unique=True),
        Index("ix_validated_buildings_location", "latitude", "longitude"),
        Index("ix_validated_buildings_upload_status", "uploaded_to_osm"),
        Index("ix_validated_buildings_validated_at", "validated_at"),
        CheckConstraint("length(roof_color_hex) = 7", name="ck_validated_buildings_hex_length"),
    )

    @validates("roof_color_hex")
    def _validate_hex(self, key, value):
        if value is None or not _hex_re.match(value):
            raise ConstraintViolation(key, f"{value!r} is not a #RRGGBB color")
        return value

    @validates(*_BOUNDED_FIELDS)
    def _validate_length(self, key, value):
        if value is None:
            if key in _REQUIRED_TEXT:
                raise ConstraintViolation(key, "value is required")
            return value
        limit = _BOUNDED_FIELDS[key]
        if len(value) > limit:
            raise ConstraintViolation(key, f"length {len(value)} exceeds {limit}")
        return value

    @validates("latitude", "longitude")
    def _round_coordinate(self, key, value):
        if value is None:
            raise ConstraintViolation(key, "value is required")
        return round(float(value), COORDINATE_SCALE)

    @validates("ai_confidence")
    def _validate_confidence(self, key, value):
        if value is not None and not 0.0 <= value <= 1.0:
            raise ConstraintViolation(key, f"{value} is outside [0, 1]")
        return value

    def __repr__(self) -> str:
        return (
            f"ValidatedBuilding(id={self.id!r}, osm_id={self.osm_id!r}, "
            f"roof_color_hex={self.roof_color_hex!r}, uploaded_to_osm={self.uploaded_to_osm!r})"
        )
