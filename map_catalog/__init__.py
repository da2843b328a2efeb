"""
Map catalog: the set of known indoor maps and their bounding boxes.

- Scans `maps/**/<asset>.json` sidecars (or takes an explicit asset list)
- Answers bounding-box intersection queries for the discovery endpoint
"""
from map_catalog.catalog import MapCatalog

__all__ = ["MapCatalog"]
