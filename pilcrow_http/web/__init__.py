# Canonical request/response and the dispatcher

from .core import App, Middleware, Next, RequestHandler  # noqa: F401
from .metrics import Metrics, metrics_middleware  # noqa: F401
from .middleware import access_log  # noqa: F401
from .request import ServerRequest  # noqa: F401
from .response import ResponseBody, ServerResponse  # noqa: F401

__all__ = [
	"App",
	"Middleware",
	"Next",
	"RequestHandler",
	"Metrics",
	"metrics_middleware",
	"access_log",
	"ServerRequest",
	"ResponseBody",
	"ServerResponse",
]
