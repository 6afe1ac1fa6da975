"""FastAPI Depends() for the model selector."""

from roof_api.services.model_selector import ModelSelector, model_selector


def get_model_selector() -> ModelSelector:
    return model_selector
