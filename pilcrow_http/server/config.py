import tomllib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pilcrow_http.errors import ConfigError
from pilcrow_http.transport.enums import TransportType


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    transport: TransportType = TransportType.TCP
    log_level: str = "INFO"
    app: Optional[str] = None
    plugins: List[str] = field(default_factory=list)


def parse_config(data: Dict[str, Any]) -> ServerConfig:
    s = data.get("server", {})
    if not isinstance(s, dict):
        raise ConfigError("[server] must be a table")
    try:
        transport = TransportType(str(s.get("transport", "tcp")).lower().strip())
    except ValueError:
        raise ConfigError(f"unknown transport {s.get('transport')!r}") from None
    try:
        port = int(s.get("port", 8000))
    except (TypeError, ValueError):
        raise ConfigError(f"invalid port {s.get('port')!r}") from None
    if not 0 <= port <= 65535:
        raise ConfigError(f"invalid port {port}")
    plugins = s.get("plugins", [])
    if not isinstance(plugins, list) or not all(isinstance(p, str) for p in plugins):
        raise ConfigError("plugins must be a list of module paths")
    app = s.get("app")
    return ServerConfig(
        host=str(s.get("host", "0.0.0.0")),
        port=port,
        transport=transport,
        log_level=str(s.get("log_level", "INFO")).upper().strip(),
        app=str(app) if app else None,
        plugins=list(plugins),
    )


def load_config(path: str) -> ServerConfig:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e
    return parse_config(data)
