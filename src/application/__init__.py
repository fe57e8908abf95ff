"""Application services: settings profiles and the heatmap update loop."""

from .heatmap_session import HeatmapSession
from .settings import HeatmapSettings

__all__ = ["HeatmapSession", "HeatmapSettings"]
