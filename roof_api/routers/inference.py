"""Inference contract endpoints: validation, token estimates, palette fallback."""

import logging

from fastapi import APIRouter

from roof_api.exceptions import InvalidRequest, InvalidResponse
from roof_api.schemas.inference import (
    FallbackRequest,
    InferenceRequest,
    InferenceResponse,
    ReSuggestionRequest,
    ResponseValidationRequest,
    TokenEstimate,
    ValidationResult,
)
from roof_api.services import inference_contract, palette

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/inference", tags=["inference"])


@router.post("/validate-request", response_model=ValidationResult)
async def validate_request(body: InferenceRequest):
    try:
        inference_contract.validate_request(body)
    except InvalidRequest as e:
        return ValidationResult(valid=False, reason=e.reason)
    return ValidationResult(valid=True)


@router.post("/validate-resuggestion", response_model=ValidationResult)
async def validate_resuggestion(body: ReSuggestionRequest):
    try:
        inference_contract.validate_resuggestion(body)
    except InvalidRequest as e:
        return ValidationResult(valid=False, reason=e.reason)
    return ValidationResult(valid=True)


@router.post("/validate-response", response_model=ValidationResult)
async def validate_response(body: ResponseValidationRequest):
    try:
        inference_contract.validate_response(
            body.response, body.allowed_colors, enforce_palette=body.enforce_palette
        )
    except InvalidResponse as e:
        return ValidationResult(valid=False, reason=e.reason)
    return ValidationResult(valid=True)


@router.post("/estimate-tokens", response_model=TokenEstimate)
async def estimate_tokens(body: InferenceRequest):
    return TokenEstimate(estimated_tokens=inference_contract.estimate_token_usage(body))


@router.post("/fallback", response_model=InferenceResponse)
async def fallback_suggestion(body: FallbackRequest):
    response = palette.fallback_suggestion(body.roof_color_hex, body.allowed_colors)
    logger.info("Palette fallback for %s -> %s", body.roof_color_hex, response.color)
    return response
