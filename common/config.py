from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv


DEFAULT_CONFIG_PATH = "config/params.yaml"

_DEFAULTS: Dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8080, "tls": {"certfile": None, "keyfile": None}},
    "maps": {"root": "maps", "route_prefix": "maps"},
    "cors": {"allow_origins": ["*"]},
    "logging": {"level": "INFO"},
}


@dataclass
class ServerConfig:
    """
    Resolved server settings.

    `route_prefix` is shared by the discovery endpoint (URL construction) and
    the static mount; it comes from the config file only, never from env.
    """
    host: str = "0.0.0.0"
    port: int = 8080
    maps_root: str = "maps"
    route_prefix: str = "maps"
    certfile: Optional[str] = None
    keyfile: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.port = int(self.port)
        if not (0 < self.port < 65536):
            raise ValueError(f"port out of range: {self.port}")
        self.route_prefix = str(self.route_prefix).strip("/")
        if not self.route_prefix:
            raise ValueError("maps.route_prefix must not be empty")
        if bool(self.certfile) != bool(self.keyfile):
            raise ValueError("TLS needs both certfile and keyfile")

    @property
    def tls_enabled(self) -> bool:
        return bool(self.certfile and self.keyfile)

    @classmethod
    def from_dict(cls, P: Dict[str, Any]) -> "ServerConfig":
        srv = P.get("server", {}) or {}
        tls = srv.get("tls", {}) or {}
        maps = P.get("maps", {}) or {}
        return cls(
            host=str(srv.get("host", "0.0.0.0")),
            port=srv.get("port", 8080),
            maps_root=str(maps.get("root", "maps")),
            route_prefix=maps.get("route_prefix", "maps"),
            certfile=tls.get("certfile") or None,
            keyfile=tls.get("keyfile") or None,
            cors_origins=list((P.get("cors") or {}).get("allow_origins") or ["*"]),
            log_level=str((P.get("logging", {}) or {}).get("level", "INFO")),
        )


def _read_yaml(path: str) -> Dict[str, Any]:
    if not Path(path).exists():
        return copy.deepcopy(_DEFAULTS)
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _section(d: Dict[str, Any], key: str) -> Dict[str, Any]:
    sub = d.get(key)
    if not isinstance(sub, dict):
        sub = {}
        d[key] = sub
    return sub


def _apply_env(P: Dict[str, Any]) -> Dict[str, Any]:
    srv = _section(P, "server")
    tls = _section(srv, "tls")
    maps = _section(P, "maps")
    log = _section(P, "logging")

    if os.environ.get("MAPS_HOST"):
        srv["host"] = os.environ["MAPS_HOST"]
    if os.environ.get("PORT"):
        srv["port"] = os.environ["PORT"]
    if os.environ.get("MAPS_ROOT"):
        maps["root"] = os.environ["MAPS_ROOT"]
    if os.environ.get("MAPS_TLS_CERTFILE"):
        tls["certfile"] = os.environ["MAPS_TLS_CERTFILE"]
    if os.environ.get("MAPS_TLS_KEYFILE"):
        tls["keyfile"] = os.environ["MAPS_TLS_KEYFILE"]
    if os.environ.get("LOG_LEVEL"):
        log["level"] = os.environ["LOG_LEVEL"]
    return P


def load_config(path: Optional[str] = None) -> ServerConfig:
    """
    Resolve settings: .env -> YAML file -> environment overrides.

    The file is `path`, else $MAPS_SERVER_CONFIG, else config/params.yaml;
    built-in defaults are used when it does not exist.
    """
    load_dotenv()
    path = path or os.environ.get("MAPS_SERVER_CONFIG") or DEFAULT_CONFIG_PATH
    return ServerConfig.from_dict(_apply_env(_read_yaml(path)))
