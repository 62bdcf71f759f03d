import importlib
import logging as log
from typing import List

from pilcrow_http.errors import ConfigError
from pilcrow_http.server.config import ServerConfig
from pilcrow_http.server.plugins import hello
from pilcrow_http.transport.enums import TransportType
from pilcrow_http.transport.tcp import serve
from pilcrow_http.web.core import App


def load_app(dotted: str) -> App:
    mod_path, attr = dotted.split(":", 1) if ":" in dotted else (dotted, "app")
    mod = importlib.import_module(mod_path)
    obj = getattr(mod, attr, None)
    if obj is None:
        raise ConfigError(f"{mod_path} has no attribute {attr!r}")
    if not isinstance(obj, App) and callable(obj):
        obj = obj()
    if not isinstance(obj, App):
        raise ConfigError(f"{dotted} is not an App")
    return obj


def load_plugin(app: App, dotted: str) -> bool:
    mod = importlib.import_module(dotted)
    reg = getattr(mod, "register", None)
    if not callable(reg):
        return False
    reg(app)
    return True


class ServerRunner:
    def __init__(self, config: ServerConfig) -> None:
        self.config = config
        self.loaded: List[str] = []

    def _load_plugins(self, app: App) -> int:
        logger = log.getLogger("pilcrow.server")
        for m in self.config.plugins:
            try:
                ok = load_plugin(app, m)
            except ImportError as e:
                logger.warning("plugin_load_failed module=%s err=%r", m, e)
                continue
            if ok:
                self.loaded.append(m)
            else:
                logger.warning("plugin_without_register module=%s", m)
        return len(self.loaded)

    def build_app(self) -> App:
        app = load_app(self.config.app) if self.config.app else App()
        loaded = self._load_plugins(app)
        if self.config.app is None and loaded == 0:
            hello.register(app)
            log.getLogger("pilcrow.server").info("no app or plugins specified; installed example routes / and /stream")
        return app

    def start(self) -> None:
        if self.config.transport is not TransportType.TCP:
            raise SystemExit(
                "the asgi transport runs under an ASGI server; expose "
                "pilcrow_http.transport.asgi.as_asgi(app) to it instead"
            )
        app = self.build_app()
        log.getLogger("pilcrow.server").info("starting transport=%s", self.config.transport.value)
        serve(app, self.config.port, self.config.host)
