from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from pilcrow_http.core.enums import HttpMethod
from pilcrow_http.web.request import ServerRequest
from pilcrow_http.web.response import ServerResponse

Next = Callable[[], Awaitable[None]]
RequestHandler = Callable[[ServerRequest, ServerResponse], Union[Awaitable[None], None]]
Middleware = Callable[[ServerRequest, ServerResponse, Next], Union[Awaitable[None], None]]


async def _settle(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class App:
    """Route table plus middleware chain.

    Routes are keyed by exact ``(method, pathname)``; the ``ALL`` method is
    the per-pathname fallback. Registering the same key twice keeps the
    last handler. Middleware run in registration order, each wrapping the
    rest of the chain through ``next``.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Tuple[str, str], RequestHandler] = {}
        self._middleware: List[Middleware] = []

    async def handle(self, request: ServerRequest, response: ServerResponse) -> None:
        handler = self.resolve(request.method, request.pathname)
        if handler is None:
            response.write_head(404)
            return
        if not self._middleware:
            await _settle(handler(request, response))
            return
        await self._run(tuple(self._middleware), 0, handler, request, response)

    async def _run(
        self,
        chain: Sequence[Middleware],
        index: int,
        handler: RequestHandler,
        request: ServerRequest,
        response: ServerResponse,
    ) -> None:
        if index == len(chain):
            await _settle(handler(request, response))
            return

        async def next_() -> None:
            await self._run(chain, index + 1, handler, request, response)

        await _settle(chain[index](request, response, next_))

    def resolve(self, method: str, pathname: str) -> Optional[RequestHandler]:
        handler = self._handlers.get((method, pathname))
        if handler is None:
            handler = self._handlers.get((HttpMethod.ALL.value, pathname))
        return handler

    def add(self, method: Union[str, HttpMethod], pathname: str, handler: RequestHandler) -> App:
        key = method.value if isinstance(method, HttpMethod) else method
        self._handlers[(key, pathname)] = handler
        return self

    def route(self, method: Union[str, HttpMethod], pathname: str) -> Callable[[RequestHandler], RequestHandler]:
        def _wrap(fn: RequestHandler) -> RequestHandler:
            self.add(method, pathname, fn)
            return fn
        return _wrap

    def get(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.GET, pathname, handler)

    def post(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.POST, pathname, handler)

    def put(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.PUT, pathname, handler)

    def delete(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.DELETE, pathname, handler)

    def patch(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.PATCH, pathname, handler)

    def head(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.HEAD, pathname, handler)

    def options(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.OPTIONS, pathname, handler)

    def trace(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.TRACE, pathname, handler)

    def all(self, pathname: str, handler: RequestHandler) -> App:
        return self.add(HttpMethod.ALL, pathname, handler)

    def use(self, middleware: Middleware) -> App:
        self._middleware.append(middleware)
        return self
