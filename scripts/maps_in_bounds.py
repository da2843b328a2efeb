#!/usr/bin/env python3
"""
Query a running indoor maps server for the maps inside a bounding box and
optionally download them.

Examples:
  python scripts/maps_in_bounds.py --server http://localhost:8080 -- -1 -1 1 1
  python scripts/maps_in_bounds.py --server https://maps.example.com 4.88 52.36 4.92 52.38 --fetch data/maps
"""
from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

import requests


def query_maps(
    server: str,
    west: float,
    south: float,
    east: float,
    north: float,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> List[Dict[str, Any]]:
    """
    GET /maps-in-bounds/{west},{south},{east},{north} and return the decoded list.
    Raises requests.HTTPError on a non-2xx answer (400 = bad coordinates).
    """
    session = session or requests.Session()
    url = f"{server.rstrip('/')}/maps-in-bounds/{west!r},{south!r},{east!r},{north!r}"
    resp = session.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp.json()


def download_map(
    url: str,
    out_dir: Path,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
    route_prefix: str = "maps",
) -> Path:
    """
    Download one map file into out_dir, keeping its path below `route_prefix`
    (the server's maps.route_prefix; may span several segments).

    Raises ValueError if the URL would land outside out_dir.
    """
    session = session or requests.Session()
    path = unquote(urlparse(url).path).lstrip("/")
    prefix = route_prefix.strip("/") + "/"
    rel = path[len(prefix):] if path.startswith(prefix) else path
    root = out_dir.resolve()
    dest = (root / rel).resolve()
    if dest == root or root not in dest.parents:
        raise ValueError(f"refusing to write outside {out_dir}: {url}")
    dest.parent.mkdir(parents=True, exist_ok=True)
    resp = session.get(url, timeout=timeout)
    resp.raise_for_status()
    dest.write_bytes(resp.content)
    return dest


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="List (and fetch) indoor maps inside a bounding box")
    ap.add_argument("--server", default="http://localhost:8080")
    ap.add_argument("--fetch", default=None, help="Directory to download the returned maps into")
    ap.add_argument("--prefix", default="maps", help="Static route prefix of the server (maps.route_prefix)")
    ap.add_argument("--timeout", type=float, default=10.0)
    ap.add_argument("west", type=float)
    ap.add_argument("south", type=float)
    ap.add_argument("east", type=float)
    ap.add_argument("north", type=float)
    args = ap.parse_args(argv)

    session = requests.Session()
    t0 = time.perf_counter()
    try:
        maps = query_maps(args.server, args.west, args.south, args.east, args.north, session=session, timeout=args.timeout)
    except requests.RequestException as e:
        print(f"Query failed: {e}", file=sys.stderr)
        return 1
    print(f"{len(maps)} map(s) in {(time.perf_counter() - t0) * 1e3:.1f} ms")

    for m in maps:
        w, s, e, n = m["boundingBox"]
        print(f"  {m['path']}  [{w}, {s}, {e}, {n}]")

    if args.fetch:
        out_dir = Path(args.fetch)
        for m in maps:
            try:
                dest = download_map(m["path"], out_dir, session=session, timeout=args.timeout, route_prefix=args.prefix)
            except (requests.RequestException, ValueError) as e:
                print(f"  Failed {m['path']}: {e}", file=sys.stderr)
                continue
            print(f"  Saved {dest}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
