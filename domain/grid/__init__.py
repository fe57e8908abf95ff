"""Grid Bounded Context.

Responsible for materialized grid cells and local-frame geometry:
- Value Objects: GeoPoint, LocalPoint, GridKey, GridCell, LocationSample
- Services: CoordinateMapper, GridCache
- Policies: RecomputePolicy strategies for the update loop
"""
