"""Model catalog + quality/budget model selection.

Config-driven: reads a YAML catalog at startup, e.g.

    models:
      openai/gpt-4o-mini: {quality: 0.7, token_limit: 128000, cost_per_token: 0.00000015}
      claude-2.1:         {quality: 0.6, token_limit: 200000, cost_per_token: 0.000008}

Identifiers go through the resolver, so bare verified names pick up their provider.
"""

import logging
from dataclasses import dataclass

import yaml

from roof_api.exceptions import NoEligibleModel
from roof_api.services.model_resolver import ModelDescriptor, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    descriptor: ModelDescriptor
    quality: float
    token_limit: int
    cost_per_token: float

    @classmethod
    def from_identifier(
        cls, identifier: str, quality: float, token_limit: int, cost_per_token: float
    ) -> "CatalogEntry":
        return cls(resolve(identifier), quality, token_limit, cost_per_token)

    @property
    def name(self) -> str:
        return self.descriptor.display_name

    def cost(self, tokens: int) -> float:
        return tokens * self.cost_per_token


class ModelSelector:
    """Pick the highest quality model that fits a token count and budget."""

    def __init__(self, entries: list[CatalogEntry] | None = None):
        self.entries: list[CatalogEntry] = list(entries or [])

    def load_from_yaml(self, catalog_path: str):
        """Load catalog entries from a YAML file."""
        with open(catalog_path) as f:
            config = yaml.safe_load(f) or {}

        entries = []
        for identifier, cfg in (config.get("models") or {}).items():
            entries.append(CatalogEntry.from_identifier(
                identifier,
                quality=float(cfg.get("quality", 0.0)),
                token_limit=int(cfg.get("token_limit", 0)),
                cost_per_token=float(cfg.get("cost_per_token", 0.0)),
            ))

        self.entries = entries
        logger.info("Loaded %d catalog model(s) from %s", len(entries), catalog_path)

    def select(self, token_count: int, max_budget: float) -> CatalogEntry:
        eligible = [
            e for e in self.entries
            if e.token_limit >= token_count and e.cost(token_count) <= max_budget
        ]
        if not eligible:
            raise NoEligibleModel(
                f"No model available that can handle {token_count} tokens "
                f"within a budget of ${max_budget:.2f}"
            )
        return max(eligible, key=lambda e: e.quality)

    def is_loaded(self) -> bool:
        return len(self.entries) > 0


# Singleton
model_selector = ModelSelector()
