"""Infrastructure adapters for location input.

Adapter exported for simplified imports.
"""

from .simulated_provider import SimulatedLocationProvider

__all__ = ["SimulatedLocationProvider"]
