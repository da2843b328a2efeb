from __future__ import annotations

from typing import List
from urllib.parse import quote

from common.types import Catalog, DiscoveryResult, parse_bounding_box


def asset_url(scheme: str, host: str, route_prefix: str, name: str) -> str:
    """
    Absolute URL of a map asset under the static route.

        asset_url("https", "example.com", "maps", "floor1.png")
        -> "https://example.com/maps/floor1.png"
    """
    return f"{scheme}://{host}/{route_prefix.strip('/')}/{quote(name, safe='/')}"


class DiscoveryEndpoint:
    """
    Answers "which maps intersect this bounding box?".

    No I/O, no timing, no logging: a function of the request parameters and
    the catalog. Timing is done by DiscoveryTimingMiddleware.
    """

    def __init__(self, catalog: Catalog, route_prefix: str = "maps"):
        self.catalog = catalog
        self.route_prefix = route_prefix.strip("/")

    def handle(
        self,
        scheme: str,
        host: str,
        west: str,
        south: str,
        east: str,
        north: str,
    ) -> List[DiscoveryResult]:
        """
        Parse the four coordinates, query the catalog once and map each match
        to a DiscoveryResult, keeping the catalog's order.

        Raises InvalidBoundingBox before the catalog is touched if any
        coordinate is not a finite number.
        """
        box = parse_bounding_box(west, south, east, north)
        return [
            DiscoveryResult(
                url=asset_url(scheme, host, self.route_prefix, asset.name),
                bounding_box=asset.bounding_box,
            )
            for asset in self.catalog.find_intersecting(box)
        ]
