from pilcrow_http.core import (
    CookieAttributes,
    SameSite,
    HttpMethod,
    ResponseState,
    ServerHeaders,
    LocalKey,
    Locals,
    CompletionSignal,
)
from pilcrow_http.errors import PilcrowError, BodyParseError, HeadAlreadySentError, ConfigError
from pilcrow_http.web import (
    App,
    Middleware,
    Next,
    RequestHandler,
    ServerRequest,
    ServerResponse,
    ResponseBody,
    Metrics,
    metrics_middleware,
    access_log,
)
from pilcrow_http.transport.base import ResponseWriter, TransportServer
from pilcrow_http.transport.enums import TransportType
from pilcrow_http.transport.tcp import HttpTcpServer, serve
from pilcrow_http.transport.asgi import AsgiAdapter, as_asgi

__all__ = [
    "CookieAttributes",
    "SameSite",
    "HttpMethod",
    "ResponseState",
    "ServerHeaders",
    "LocalKey",
    "Locals",
    "CompletionSignal",
    "PilcrowError",
    "BodyParseError",
    "HeadAlreadySentError",
    "ConfigError",
    "App",
    "Middleware",
    "Next",
    "RequestHandler",
    "ServerRequest",
    "ServerResponse",
    "ResponseBody",
    "Metrics",
    "metrics_middleware",
    "access_log",
    "ResponseWriter",
    "TransportServer",
    "TransportType",
    "HttpTcpServer",
    "AsgiAdapter",
    "as_asgi",
    "serve",
]
