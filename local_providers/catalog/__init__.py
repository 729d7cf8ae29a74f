"""Static model catalog."""

from .recommended import RECOMMENDED_MODELS, CatalogEntry, RecommendedModel, recommended_models

__all__ = ["RECOMMENDED_MODELS", "CatalogEntry", "RecommendedModel", "recommended_models"]
