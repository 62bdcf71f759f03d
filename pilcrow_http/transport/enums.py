from enum import Enum


class TransportType(Enum):
    TCP = "tcp"
    ASGI = "asgi"
