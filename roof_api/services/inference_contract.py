"""Contract checks for roof color inference requests and responses.

Pure functions, no I/O. Each validator returns None when the payload is
acceptable and raises InvalidRequest / InvalidResponse with a reason otherwise.
"""

import logging

from roof_api.config import settings
from roof_api.exceptions import InvalidRequest, InvalidResponse
from roof_api.schemas.inference import (
    IMAGE_QUALITIES,
    BoundingBox,
    ImageSummary,
    InferenceRequest,
    InferenceResponse,
    ReSuggestionRequest,
)

logger = logging.getLogger(__name__)

# Rough token accounting: ~4 JSON chars per token, ~6 base64 chars per image token
_CHARS_PER_TOKEN = 4
_IMAGE_CHARS_PER_TOKEN = 6
_PROMPT_OVERHEAD_TOKENS = 100


def _check_bounding_box(bbox: BoundingBox):
    if bbox.min_x > bbox.max_x:
        raise InvalidRequest(
            f"boundingBox: minX ({bbox.min_x}) must not exceed maxX ({bbox.max_x})"
        )
    if bbox.min_y > bbox.max_y:
        raise InvalidRequest(
            f"boundingBox: minY ({bbox.min_y}) must not exceed maxY ({bbox.max_y})"
        )


def _check_image_summary(summary: ImageSummary):
    if summary.quality not in IMAGE_QUALITIES:
        raise InvalidRequest(
            f"imageSummary.quality must be one of {list(IMAGE_QUALITIES)}, got {summary.quality!r}"
        )


def _check_palette(allowed_colors: list[str]):
    if not allowed_colors:
        raise InvalidRequest("allowedColors must not be empty")


def validate_request(request: InferenceRequest) -> None:
    _check_bounding_box(request.bounding_box)
    _check_palette(request.allowed_colors)
    _check_image_summary(request.image_summary)


def validate_resuggestion(request: ReSuggestionRequest) -> None:
    _check_palette(request.allowed_colors)
    _check_image_summary(request.image_summary)
    if request.previous_color not in request.allowed_colors:
        raise InvalidRequest(
            f"previousColor {request.previous_color!r} is not in allowedColors"
        )


def validate_response(
    response: InferenceResponse,
    allowed_colors: list[str],
    enforce_palette: bool | None = None,
) -> None:
    """Check confidence bounds and, when enforced, palette membership."""
    if enforce_palette is None:
        enforce_palette = settings.enforce_palette

    if not 0.0 <= response.confidence <= 1.0:
        raise InvalidResponse(f"confidence {response.confidence} is outside [0, 1]")

    if response.color not in allowed_colors:
        if enforce_palette:
            raise InvalidResponse(f"color {response.color!r} is not in allowedColors")
        logger.warning(
            "Response color %r outside palette %s (not enforced)", response.color, allowed_colors
        )


def estimate_token_usage(request: InferenceRequest) -> int:
    """Very rough token estimate for a request, including attached images."""
    payload = request.model_dump_json(by_alias=True)
    tokens = len(payload) // _CHARS_PER_TOKEN + _PROMPT_OVERHEAD_TOKENS

    summary = request.image_summary
    if summary.thumbnail:
        tokens += len(summary.thumbnail) // _IMAGE_CHARS_PER_TOKEN
    if summary.full_image:
        tokens += len(summary.full_image) // _IMAGE_CHARS_PER_TOKEN
    return tokens


def fallback_response(reason: str) -> InferenceResponse:
    """Neutral suggestion used when no provider result is available."""
    return InferenceResponse(color="other", confidence=0.0, explanation=reason, method="fallback")
