from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from common.logging_setup import get_logger
from common.types import BoundingBox, MapAsset


log = get_logger(__name__)

SIDECAR_SUFFIX = ".json"


def _bbox_from_meta(meta: Dict[str, Any]) -> BoundingBox:
    b = meta.get("boundingBox", meta.get("bbox"))
    if b is not None:
        return BoundingBox.from_sequence(b)
    return BoundingBox(meta["west"], meta["south"], meta["east"], meta["north"])


class MapCatalog:
    """
    In-memory catalog of pre-rendered indoor maps.

    Built either from an explicit list of assets or by scanning a maps
    directory for JSON sidecars:

        root/
          ├─ lobby.geojson        (the map, served as /maps/lobby.geojson)
          ├─ lobby.geojson.json   ({"boundingBox": [w, s, e, n]})
          └─ campus/
              ├─ floor1.png
              └─ floor1.png.json

    The asset name is the sidecar's path relative to root without ".json";
    sidecars whose map file does not exist are ignored.
    Queries read an immutable snapshot, so callers never need a lock.
    """
    def __init__(self, root: Optional[str] = "maps", assets: Optional[Iterable[MapAsset]] = None):
        self.root = Path(root) if root else None
        self._lock = threading.Lock()
        self._assets: Tuple[MapAsset, ...] = ()
        self._loaded_at: Optional[str] = None
        if assets is not None:
            self._publish(assets)
        else:
            self.reload()

    # -------- public API --------

    def find_intersecting(self, box: BoundingBox) -> List[MapAsset]:
        """Every asset whose extent overlaps `box` (edges inclusive), in catalog order."""
        snapshot = self._assets
        return [a for a in snapshot if a.bounding_box.intersects(box)]

    def get(self, name: str) -> Optional[MapAsset]:
        for a in self._assets:
            if a.name == name:
                return a
        return None

    def names(self) -> List[str]:
        return [a.name for a in self._assets]

    def stats(self) -> Dict[str, Any]:
        return {
            "maps": len(self._assets),
            "root": str(self.root) if self.root else None,
            "loaded_at": self._loaded_at,
        }

    def reload(self) -> int:
        """Rescan the root directory and swap in the new index. Returns the asset count."""
        with self._lock:
            assets = self._scan()
            self._publish(assets)
        log.info("Map catalog loaded", extra={"extra": {"maps": len(assets), "root": str(self.root)}})
        return len(assets)

    def __len__(self) -> int:
        return len(self._assets)

    # -------- internals --------

    def _publish(self, assets: Iterable[MapAsset]) -> None:
        by_name: Dict[str, MapAsset] = {}
        for a in assets:
            by_name[a.name] = a
        # stable order for deterministic responses
        self._assets = tuple(sorted(by_name.values(), key=lambda a: a.name))
        self._loaded_at = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

    def _scan(self) -> List[MapAsset]:
        if self.root is None or not self.root.is_dir():
            return []
        out: List[MapAsset] = []
        for js in self.root.rglob("*" + SIDECAR_SUFFIX):
            rel = js.relative_to(self.root).as_posix()
            name = rel[: -len(SIDECAR_SUFFIX)]
            if not name or name.endswith("/"):
                continue
            if not (self.root / name).is_file():
                # a .json map file, or a sidecar whose map is missing
                log.debug("No map file for sidecar %s", rel)
                continue
            try:
                meta = json.loads(js.read_text(encoding="utf-8"))
                if not isinstance(meta, dict):
                    raise ValueError("sidecar must be a JSON object")
                bbox = _bbox_from_meta(meta)
            except (OSError, ValueError, KeyError, TypeError) as e:
                # InvalidBoundingBox and JSONDecodeError are ValueErrors
                log.warning("Skipping map sidecar %s: %s", rel, e)
                continue
            out.append(MapAsset(name=name, bounding_box=bbox))
        return out
