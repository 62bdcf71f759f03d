from pilcrow_http.core.cookies import CookieAttributes, SameSite, parse_cookies, serialize_cookie
from pilcrow_http.core.enums import HttpMethod, ResponseState
from pilcrow_http.core.headers import ServerHeaders
from pilcrow_http.core.locals import LocalKey, Locals
from pilcrow_http.core.signal import CompletionSignal

__all__ = [
    "CookieAttributes",
    "SameSite",
    "parse_cookies",
    "serialize_cookie",
    "HttpMethod",
    "ResponseState",
    "ServerHeaders",
    "LocalKey",
    "Locals",
    "CompletionSignal",
]
