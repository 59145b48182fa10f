"""Sort image collections by visual similarity with k-means prototypes."""

from .config import FeatureConfig
from .routing import AffixStripNaming, RouteConfig, SameStemNaming

__all__ = ["FeatureConfig", "RouteConfig", "AffixStripNaming", "SameStemNaming"]
