"""Inference transport port: the seam to an external provider client."""

from typing import Protocol

from roof_api.schemas.inference import InferenceRequest, InferenceResponse, ReSuggestionRequest
from roof_api.services.inference_contract import (
    validate_request,
    validate_response,
    validate_resuggestion,
)
from roof_api.services.model_resolver import ModelDescriptor, resolve


class InferenceTransport(Protocol):
    """Sends contract requests to the provider named by a resolved route.

    Implementations own retries, timeouts and cancellation.
    """

    async def suggest(
        self, request: InferenceRequest, route: ModelDescriptor
    ) -> InferenceResponse: ...

    async def resuggest(
        self, request: ReSuggestionRequest, route: ModelDescriptor
    ) -> InferenceResponse: ...


async def request_suggestion(
    transport: InferenceTransport, identifier: str, request: InferenceRequest
) -> InferenceResponse:
    """Resolve the route, check the request, call the provider, check the reply."""
    validate_request(request)
    route = resolve(identifier)
    response = await transport.suggest(request, route)
    validate_response(response, request.allowed_colors)
    return response


async def request_resuggestion(
    transport: InferenceTransport, identifier: str, request: ReSuggestionRequest
) -> InferenceResponse:
    validate_resuggestion(request)
    route = resolve(identifier)
    response = await transport.resuggest(request, route)
    validate_response(response, request.allowed_colors)
    return response
