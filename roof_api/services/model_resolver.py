"""Resolve free-form model identifiers into provider/model routing info.

Resolution order:
  1. "provider/model[/...]"  -> split on the first "/"
  2. "provider.model[...]"   -> split on the first ".", unless the part after
     it is all digits (a version suffix like "claude-2.1")
  3. bare verified name       -> provider from the verified-model table
  4. anything else            -> unknown provider, model kept verbatim

resolve() never raises. An empty provider means "route directly by model name".
"""

from dataclasses import dataclass
from types import MappingProxyType

_VERIFIED: dict[str, tuple[str, ...]] = {
    "openai": (
        "gpt-4o",
        "gpt-4o-mini",
        "gpt-4-turbo",
        "gpt-4",
        "gpt-3.5-turbo",
    ),
    "anthropic": (
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
        "claude-2.1",
        "claude-2",
    ),
    "mistral": (
        "mistral-large-latest",
        "mistral-medium-latest",
        "mistral-small-latest",
    ),
}

# lower-cased model name -> provider
_VERIFIED_LOOKUP = MappingProxyType({
    name.lower(): provider
    for provider, names in _VERIFIED.items()
    for name in names
})
VERIFIED_MODELS = MappingProxyType(_VERIFIED)

PROVIDER_SEPARATOR = "/"


@dataclass(frozen=True)
class ModelDescriptor:
    provider: str
    model: str
    separator: str = PROVIDER_SEPARATOR

    @property
    def full_identifier(self) -> str:
        if not self.provider:
            return self.model
        return f"{self.provider}{self.separator}{self.model}"

    @property
    def display_name(self) -> str:
        if not self.provider:
            return self.model
        return f"{self.provider} {self.model}"

    @property
    def is_routable(self) -> bool:
        return bool(self.provider)


def resolve(identifier: str | None) -> ModelDescriptor:
    """Parse a model identifier into a ModelDescriptor."""
    if not identifier:
        return ModelDescriptor("", "")

    parts = identifier.split("/")
    if len(parts) > 1:
        return ModelDescriptor(parts[0], "/".join(parts[1:]), "/")

    parts = identifier.split(".")
    # "" counts as a version suffix too, so "a." is not split
    if len(parts) > 1 and not (parts[1] == "" or parts[1].isdigit()):
        return ModelDescriptor(parts[0], ".".join(parts[1:]), ".")

    provider = _VERIFIED_LOOKUP.get(identifier.lower())
    if provider:
        return ModelDescriptor(provider, identifier, "/")

    return ModelDescriptor("", identifier, "")


def providers() -> list[str]:
    return list(VERIFIED_MODELS)


def models_for_provider(provider: str) -> list[str]:
    return list(VERIFIED_MODELS.get(provider.lower(), ()))


def supported_models() -> list[str]:
    """All verified models as provider/model identifiers."""
    return [
        ModelDescriptor(provider, name).full_identifier
        for provider, names in VERIFIED_MODELS.items()
        for name in names
    ]


def default_model_for_provider(provider: str) -> str:
    names = models_for_provider(provider)
    return names[0] if names else ""


def default_provider() -> str:
    # Prefer anthropic, then openai, then whatever is configured first
    for preferred in ("anthropic", "openai"):
        if preferred in VERIFIED_MODELS:
            return preferred
    return next(iter(VERIFIED_MODELS), "")
