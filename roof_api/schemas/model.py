"""Model identifier + catalog schemas."""

from pydantic import BaseModel, Field


class ModelDescriptorResponse(BaseModel):
    provider: str
    model: str
    separator: str
    full_identifier: str
    display_name: str


class SupportedModelsResponse(BaseModel):
    models: list[str]
    providers: list[str]
    default_provider: str


class ModelSelectRequest(BaseModel):
    token_count: int = Field(..., ge=0)
    max_budget: float = Field(..., ge=0)


class CatalogEntryResponse(BaseModel):
    name: str
    identifier: str
    quality: float
    token_limit: int
    cost_per_token: float
    estimated_cost: float | None = None
