from pilcrow_http.server.config import ServerConfig, load_config, parse_config
from pilcrow_http.server.main import ServerRunner, load_app, load_plugin

__all__ = [
    "ServerConfig",
    "load_config",
    "parse_config",
    "ServerRunner",
    "load_app",
    "load_plugin",
]
