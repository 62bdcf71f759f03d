from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from enum import Enum
from typing import Dict, List, Optional
from urllib.parse import quote, unquote

# characters encodeURIComponent leaves alone besides the quote() defaults
_SAFE = "!*'()"


class SameSite(Enum):
    LAX = "Lax"
    STRICT = "Strict"
    NONE = "None"


@dataclass
class CookieAttributes:
    path: Optional[str] = None
    domain: Optional[str] = None
    expires: Optional[datetime] = None
    max_age: Optional[int] = None
    secure: bool = False
    http_only: bool = False
    same_site: Optional[SameSite] = None


def parse_cookies(header: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for part in header.split(";"):
        trimmed = part.strip()
        if not trimmed or "=" not in trimmed:
            continue
        name, value = trimmed.split("=", 1)
        name = name.strip()
        if not name:
            continue
        out[unquote(name)] = unquote(value.strip())
    return out


def serialize_cookie(name: str, value: str, attributes: Optional[CookieAttributes] = None) -> str:
    attrs = attributes or CookieAttributes()
    parts: List[str] = [f"{quote(name, safe=_SAFE)}={quote(value, safe=_SAFE)}"]
    if attrs.domain is not None:
        parts.append(f"Domain={attrs.domain}")
    if attrs.expires is not None:
        parts.append(f"Expires={format_datetime(attrs.expires.astimezone(timezone.utc), usegmt=True)}")
    if attrs.http_only:
        parts.append("HttpOnly")
    if attrs.max_age is not None:
        parts.append(f"Max-Age={int(attrs.max_age)}")
    if attrs.path is not None:
        parts.append(f"Path={attrs.path}")
    if attrs.same_site is not None:
        parts.append(f"SameSite={SameSite(attrs.same_site).value}")
    if attrs.secure:
        parts.append("Secure")
    return "; ".join(parts)
