from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from common.config import ServerConfig, load_config
from common.logging_setup import get_logger, setup_logging
from common.types import Catalog, InvalidBoundingBox
from common.utils import RunningStats
from map_catalog.catalog import MapCatalog
from map_server.discovery import DiscoveryEndpoint
from map_server.middleware import DiscoveryTimingMiddleware, RequestLogMiddleware


log = get_logger(__name__)

DISCOVERY_PATH = "/maps-in-bounds"
CORS_HEADERS = ["Origin", "X-Requested-With", "X-Auth-Token", "Content-Type", "Accept"]


def create_app(config: Optional[ServerConfig] = None, catalog: Optional[Catalog] = None) -> FastAPI:
    """
    Build the indoor maps API.

    `catalog` defaults to a MapCatalog scanned from config.maps_root. The
    same config.route_prefix is used for the static mount and for the URLs
    the discovery endpoint hands out.
    """
    config = config or ServerConfig()
    if catalog is None:
        catalog = MapCatalog(config.maps_root)
    endpoint = DiscoveryEndpoint(catalog, route_prefix=config.route_prefix)
    latency = RunningStats()

    app = FastAPI(title="Indoor Maps API", version="1.0.0")
    app.state.config = config
    app.state.catalog = catalog
    app.state.discovery = endpoint
    app.state.latency = latency

    # added innermost first
    app.add_middleware(DiscoveryTimingMiddleware, path_prefix=DISCOVERY_PATH + "/", stats=latency)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=CORS_HEADERS,
    )
    app.add_middleware(RequestLogMiddleware)

    # compression only for the map files
    maps_root = Path(config.maps_root)
    if maps_root.is_dir():
        app.mount(
            f"/{config.route_prefix}",
            GZipMiddleware(StaticFiles(directory=str(maps_root)), minimum_size=500),
            name=config.route_prefix,
        )
    else:
        log.warning("Maps directory %s not found; static map route disabled", maps_root)

    @app.api_route(DISCOVERY_PATH + "/{west},{south},{east},{north}", methods=["GET", "HEAD"])
    def maps_in_bounds(west: str, south: str, east: str, north: str, request: Request):
        """
        JSON array of {"path", "boundingBox"} for every map intersecting the box.
        400 with an empty body if a coordinate is not a finite number.
        """
        host = request.headers.get("host") or request.url.netloc
        try:
            results = endpoint.handle(request.url.scheme, host, west, south, east, north)
        except InvalidBoundingBox:
            return Response(status_code=400)
        return JSONResponse([r.to_dict() for r in results])

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Indoor maps server"

    @app.get("/health")
    def health():
        return {"status": "ok", "catalog": _catalog_stats(catalog)}

    @app.get("/stats")
    def stats():
        return {"catalog": _catalog_stats(catalog), "discovery": latency.summary()}

    return app


def _catalog_stats(catalog: Catalog) -> dict:
    fn = getattr(catalog, "stats", None)
    return fn() if callable(fn) else {}


def build_app() -> FastAPI:
    """Factory for `uvicorn map_server.server:build_app --factory`."""
    return create_app(load_config())


def run(config: ServerConfig, app: Optional[FastAPI] = None) -> None:
    """Serve on a TLS listener when a cert/key pair is configured, plain HTTP otherwise."""
    app = app or create_app(config)
    kwargs = dict(host=config.host, port=config.port, proxy_headers=True, log_config=None)
    if config.tls_enabled:
        kwargs.update(ssl_certfile=config.certfile, ssl_keyfile=config.keyfile)
    log.info(
        "Starting indoor maps server",
        extra={"extra": {"host": config.host, "port": config.port, "tls": config.tls_enabled}},
    )
    uvicorn.run(app, **kwargs)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Indoor maps discovery + static map server")
    ap.add_argument("--config", default=None, help="YAML config (default: $MAPS_SERVER_CONFIG or config/params.yaml)")
    ap.add_argument("--host", default=None)
    ap.add_argument("--port", type=int, default=None)
    ap.add_argument("--maps-root", default=None, help="Directory holding map files and their .json sidecars")
    return ap.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    config = load_config(args.config)
    overrides = {"host": args.host, "port": args.port, "maps_root": args.maps_root}
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    setup_logging(config.log_level, force=True)
    run(config)


# -------- local dev entrypoint --------
if __name__ == "__main__":
    main()
