"""
Indoor maps HTTP server

- GET /maps-in-bounds/{west},{south},{east},{north} -> maps intersecting the box
- GET /maps/<name> -> the map files themselves (gzip-compressed)
- GET /, /health, /stats
"""
