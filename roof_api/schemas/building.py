"""Validated building request/response schemas."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints, field_validator

from roof_api.db.models import (
    BUILDING_TYPE_LENGTH,
    COLOR_DESCRIPTION_LENGTH,
    HEX_COLOR_PATTERN,
    NOTES_LENGTH,
    OSM_TYPE_LENGTH,
    PICKED_PIXEL_LENGTH,
    PREVIOUS_ROOF_COLOR_LENGTH,
    VALIDATED_BY_LENGTH,
    VALIDATION_METHOD_LENGTH,
)

HexColor = Annotated[str, StringConstraints(pattern=HEX_COLOR_PATTERN)]
OsmType = Annotated[str, StringConstraints(min_length=1, max_length=OSM_TYPE_LENGTH)]
ValidationMethod = Annotated[str, StringConstraints(min_length=1, max_length=VALIDATION_METHOD_LENGTH)]
ColorDescription = Annotated[str, StringConstraints(max_length=COLOR_DESCRIPTION_LENGTH)]
PixelCoordinates = Annotated[str, StringConstraints(max_length=PICKED_PIXEL_LENGTH)]
BuildingType = Annotated[str, StringConstraints(max_length=BUILDING_TYPE_LENGTH)]
ValidatorName = Annotated[str, StringConstraints(max_length=VALIDATED_BY_LENGTH)]
Notes = Annotated[str, StringConstraints(max_length=NOTES_LENGTH)]
PreviousRoofColor = Annotated[str, StringConstraints(max_length=PREVIOUS_ROOF_COLOR_LENGTH)]


class ValidatedBuildingCreate(BaseModel):
    osm_id: int = Field(..., ge=0, description="OpenStreetMap building id, unique per record")
    osm_type: OsmType = "way"
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    roof_color_hex: HexColor = Field(..., description="Validated roof color as #RRGGBB")
    color_description: ColorDescription | None = None
    validation_method: ValidationMethod = Field(..., description="llm, manual, pixel-pick, ...")
    ai_confidence: float | None = Field(None, ge=0.0, le=1.0)
    picked_pixel_coordinates: PixelCoordinates | None = None
    building_type: BuildingType | None = None
    validated_by: ValidatorName | None = None
    validated_at: datetime | None = None
    notes: Notes | None = None
    original_osm_tags: dict | None = None
    had_existing_roof_color: bool = False
    previous_roof_color: PreviousRoofColor | None = None

    @field_validator("validated_at")
    @classmethod
    def validated_at_to_naive_utc(cls, value: datetime | None) -> datetime | None:
        # stored timestamps are naive UTC
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class ValidatedBuildingResponse(BaseModel):
    id: int
    osm_id: int
    osm_type: str
    latitude: float
    longitude: float
    roof_color_hex: str
    color_description: str | None
    validation_method: str
    ai_confidence: float | None
    picked_pixel_coordinates: str | None
    building_type: str | None
    validated_by: str | None
    validated_at: datetime
    uploaded_to_osm: bool
    uploaded_at: datetime | None
    osm_changeset_id: int | None
    notes: str | None
    original_osm_tags: dict | None
    had_existing_roof_color: bool
    previous_roof_color: str | None

    model_config = {"from_attributes": True}


class BuildingListResponse(BaseModel):
    buildings: list[ValidatedBuildingResponse]
    total: int


class MarkUploadedRequest(BaseModel):
    changeset_id: int | None = None


class MarkManyUploadedRequest(BaseModel):
    building_ids: list[int] = Field(..., min_length=1)
    changeset_id: int | None = None


class MarkManyUploadedResponse(BaseModel):
    updated: int


class ValidationStatistics(BaseModel):
    total_validated: int = 0
    pending_upload: int = 0
    uploaded_to_osm: int = 0
    validated_today: int = 0
    validated_this_week: int = 0
    most_common_method: str | None = None
    average_ai_confidence: float | None = None
