"""Signal Heatmap Domain Layer.

This package contains the core logic organized by bounded contexts:
- coverage: Synthetic signal field, emitters, signal-to-color bands
- grid: Grid cell cache, GPS <-> local frame mapping, recompute policies
"""

# Imports alphabetized per project style (isort)
from domain import coverage, grid

__all__ = ["coverage", "grid"]
