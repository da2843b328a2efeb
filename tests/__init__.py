"""
Indoor Maps Server Test Suite

Structure:
- unit/: bounding box parsing, config, catalog, discovery endpoint, helpers
- integration/: the full FastAPI app through TestClient
"""
