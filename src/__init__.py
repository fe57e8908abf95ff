"""Application and Infrastructure Layers.

Adapters and application services that orchestrate domain logic.
This layer handles location input and coordinates domain operations.
"""
