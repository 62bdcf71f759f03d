from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple


class ServerHeaders:
    """Case-insensitive header multimap.

    Keys are stored lower-cased; values keep their original casing and
    insertion order. ``set`` replaces every value of a field, ``add``
    appends one (repeated fields such as Set-Cookie).
    """

    def __init__(self) -> None:
        self._headers: Dict[str, List[str]] = {}

    def get(self, field: str) -> Optional[str]:
        values = self._headers.get(field.lower())
        return values[0] if values else None

    def get_all(self, field: str) -> List[str]:
        return list(self._headers.get(field.lower(), []))

    def set(self, field: str, value: str) -> None:
        self._headers[field.lower()] = [value]

    def add(self, field: str, value: str) -> None:
        self._headers.setdefault(field.lower(), []).append(value)

    def delete(self, field: str) -> None:
        self._headers.pop(field.lower(), None)

    def entries(self) -> Iterator[Tuple[str, List[str]]]:
        for field, values in self._headers.items():
            yield field, list(values)

    def items(self) -> Iterator[Tuple[str, str]]:
        for field, values in self._headers.items():
            for value in values:
                yield field, value

    def __contains__(self, field: object) -> bool:
        return isinstance(field, str) and field.lower() in self._headers

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"ServerHeaders({self._headers!r})"
