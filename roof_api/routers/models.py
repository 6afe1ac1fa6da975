"""Model identifier resolution + selection endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from roof_api.dependencies import get_model_selector
from roof_api.exceptions import NoEligibleModel
from roof_api.schemas.model import (
    CatalogEntryResponse,
    ModelDescriptorResponse,
    ModelSelectRequest,
    SupportedModelsResponse,
)
from roof_api.services import model_resolver
from roof_api.services.model_selector import CatalogEntry, ModelSelector

router = APIRouter(prefix="/api/models", tags=["models"])


def _entry_to_response(entry: CatalogEntry, token_count: int | None = None) -> CatalogEntryResponse:
    return CatalogEntryResponse(
        name=entry.name,
        identifier=entry.descriptor.full_identifier,
        quality=entry.quality,
        token_limit=entry.token_limit,
        cost_per_token=entry.cost_per_token,
        estimated_cost=entry.cost(token_count) if token_count is not None else None,
    )


@router.get("", response_model=SupportedModelsResponse)
async def list_supported_models():
    return SupportedModelsResponse(
        models=model_resolver.supported_models(),
        providers=model_resolver.providers(),
        default_provider=model_resolver.default_provider(),
    )


@router.get("/resolve", response_model=ModelDescriptorResponse)
async def resolve_identifier(identifier: str = ""):
    desc = model_resolver.resolve(identifier)
    return ModelDescriptorResponse(
        provider=desc.provider,
        model=desc.model,
        separator=desc.separator,
        full_identifier=desc.full_identifier,
        display_name=desc.display_name,
    )


@router.get("/catalog", response_model=list[CatalogEntryResponse])
async def list_catalog(selector: ModelSelector = Depends(get_model_selector)):
    return [_entry_to_response(e) for e in selector.entries]


@router.post("/select", response_model=CatalogEntryResponse)
async def select_model(
    body: ModelSelectRequest, selector: ModelSelector = Depends(get_model_selector)
):
    if not selector.is_loaded():
        raise HTTPException(503, "Model catalog not loaded")
    try:
        entry = selector.select(body.token_count, body.max_budget)
    except NoEligibleModel as e:
        raise HTTPException(404, str(e))
    return _entry_to_response(entry, body.token_count)
