"""Shared constants used by the application, scripts and tests.

This package provides a dependency-light location for reference data that
needs to be shared across packages without creating circular imports.
"""

from __future__ import annotations
