from enum import Enum


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    # route-table fallback, never sent on the wire
    ALL = "ALL"


class ResponseState(Enum):
    OPEN = "open"
    HEAD_SENT = "head_sent"
    CLOSED = "closed"
