"""Inference request/response schemas.

Transport-agnostic shapes exchanged with a roof color provider. JSON field
names are camelCase; Python attributes are snake_case and either is accepted
on input.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from roof_api.schemas.building import HexColor

DEFAULT_ALLOWED_COLORS = (
    "black",
    "dark gray",
    "light gray",
    "red",
    "brown",
    "tan",
    "green",
    "blue",
    "white",
    "other",
)
IMAGE_QUALITIES = ("full", "partial")


def default_palette() -> list[str]:
    return list(DEFAULT_ALLOWED_COLORS)


class Location(BaseModel):
    lat: float
    lon: float


class BoundingBox(BaseModel):
    min_x: float = Field(..., alias="minX")
    min_y: float = Field(..., alias="minY")
    max_x: float = Field(..., alias="maxX")
    max_y: float = Field(..., alias="maxY")

    model_config = {"populate_by_name": True}


class ImageSummary(BaseModel):
    thumbnail: str | None = None  # base64, typically 64x64
    full_image: str | None = Field(None, alias="fullImage")
    dominant_colors: list[str] = Field(default_factory=list, alias="dominantColors")
    quality: str = "full"

    model_config = {"populate_by_name": True}


class InferenceRequest(BaseModel):
    building_id: int = Field(..., ge=0, alias="buildingId")
    location: Location
    bounding_box: BoundingBox = Field(..., alias="boundingBox")
    existing_color_tag: str | None = Field(None, alias="existingColorTag")
    size_ratio: float = Field(..., gt=0, alias="sizeRatio")
    image_summary: ImageSummary = Field(default_factory=ImageSummary, alias="imageSummary")
    allowed_colors: list[str] = Field(default_factory=default_palette, alias="allowedColors")

    model_config = {"populate_by_name": True}


class ReSuggestionRequest(BaseModel):
    building_id: int = Field(..., ge=0, alias="buildingId")
    previous_color: str = Field(..., alias="previousColor")
    location: Location
    image_summary: ImageSummary = Field(default_factory=ImageSummary, alias="imageSummary")
    allowed_colors: list[str] = Field(default_factory=default_palette, alias="allowedColors")

    model_config = {"populate_by_name": True}


class ConfidenceLevel(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"

    @classmethod
    def from_confidence(cls, confidence: float) -> "ConfidenceLevel":
        if confidence < 0.2:
            return cls.VERY_LOW
        if confidence < 0.4:
            return cls.LOW
        if confidence < 0.6:
            return cls.MEDIUM
        if confidence < 0.8:
            return cls.HIGH
        return cls.VERY_HIGH

    @property
    def description(self) -> str:
        return _LEVEL_DESCRIPTIONS[self]


_LEVEL_DESCRIPTIONS = {
    ConfidenceLevel.VERY_LOW: "Very uncertain, please verify carefully",
    ConfidenceLevel.LOW: "Uncertain, please verify",
    ConfidenceLevel.MEDIUM: "Moderately confident",
    ConfidenceLevel.HIGH: "Confident",
    ConfidenceLevel.VERY_HIGH: "Very confident",
}


class InferenceResponse(BaseModel):
    color: str
    confidence: float
    explanation: str | None = None
    method: Literal["llm", "local_model", "fallback"] = "llm"

    @property
    def confidence_level(self) -> ConfidenceLevel:
        return ConfidenceLevel.from_confidence(self.confidence)


class ResponseValidationRequest(BaseModel):
    response: InferenceResponse
    allowed_colors: list[str] = Field(default_factory=default_palette, alias="allowedColors")
    enforce_palette: bool | None = Field(None, alias="enforcePalette")

    model_config = {"populate_by_name": True}


class ValidationResult(BaseModel):
    valid: bool
    reason: str | None = None


class TokenEstimate(BaseModel):
    estimated_tokens: int = Field(..., alias="estimatedTokens")

    model_config = {"populate_by_name": True}


class FallbackRequest(BaseModel):
    roof_color_hex: HexColor = Field(..., alias="roofColorHex")
    allowed_colors: list[str] = Field(default_factory=default_palette, alias="allowedColors")

    model_config = {"populate_by_name": True}
