"""
Route table and dispatcher.

Routes are explicit records (method, exact path, handler, middlewares) indexed
by (method, path). Matching ignores the query string and supports no path
parameters or wildcards.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence

from api.core.config import CHAIN_MODES
from api.core.http import HttpError, HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

Handler = Callable[[HttpRequest, HttpResponse], Any]
Controller = Callable[[HttpRequest, HttpResponse], Awaitable[None]]


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    handler: Handler
    middlewares: Sequence[Handler] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.method.upper(), self.path)


async def _settle(step: Handler, request: HttpRequest, response: HttpResponse) -> None:
    result = step(request, response)
    if inspect.isawaitable(result):
        await result


def apply_error(exc: BaseException, response: HttpResponse, where: str) -> None:
    """Translate an exception raised inside a controller into the response."""
    if isinstance(exc, HttpError):
        if response.finished:
            return
        response.status_code = exc.status_code
        for name, value in exc.headers.items():
            response.set_header(name, value)
        response.end(exc.body)
        return
    logger.error("Unhandled error in %s", where, exc_info=exc)
    if response.finished:
        return
    response.status_code = 500
    response.end()


async def handle_not_found(request: HttpRequest, response: HttpResponse) -> None:
    response.status_code = 404
    response.end(f"Route {request.path} not found.")


class Router:
    """Maps (method, exact path) to a handler plus its pre-handler middlewares."""

    def __init__(self, routes: Iterable[Route] = (), *, chain_mode: str = "sequential") -> None:
        if chain_mode not in CHAIN_MODES:
            raise ValueError(f"Unknown middleware chain mode: {chain_mode!r}")
        self.chain_mode = chain_mode
        self._routes: list[Route] = []
        self._index: dict[tuple[str, str], Route] = {}
        for entry in routes:
            self.add(entry)

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    def add(self, entry: Route) -> Route:
        if entry.key in self._index:
            raise ValueError(f"Route already registered: {entry.method.upper()} {entry.path}")
        self._routes.append(entry)
        self._index[entry.key] = entry
        return entry

    def get(self, path: str, *, middlewares: Sequence[Handler] = ()):
        return self._decorator("GET", path, middlewares)

    def post(self, path: str, *, middlewares: Sequence[Handler] = ()):
        return self._decorator("POST", path, middlewares)

    def _decorator(self, method: str, path: str, middlewares: Sequence[Handler]):
        def register(handler: Handler) -> Handler:
            self.add(Route(method, path, handler, tuple(middlewares)))
            return handler

        return register

    def lookup(self, method: str, path: str) -> Optional[Route]:
        return self._index.get((method.upper(), path))

    def route(self, request: HttpRequest) -> Handler:
        """Return the controller for the request, or the 404 handler."""
        entry = self.lookup(request.method, request.path)
        if entry is None:
            return handle_not_found
        if not entry.middlewares:
            return entry.handler
        if self.chain_mode == "fanout":
            return self._fanout_controller(entry)
        return self._sequential_controller(entry)

    def _sequential_controller(self, entry: Route) -> Controller:
        async def controller(request: HttpRequest, response: HttpResponse) -> None:
            try:
                for middleware in entry.middlewares:
                    await _settle(middleware, request, response)
                await _settle(entry.handler, request, response)
            except Exception as exc:
                apply_error(exc, response, f"{entry.method} {entry.path}")

        return controller

    def _fanout_controller(self, entry: Route) -> Controller:
        # Every step after the first waits only for the first one, so the
        # remaining middlewares and the handler may overlap each other.
        first, rest = entry.middlewares[0], entry.middlewares[1:]

        async def controller(request: HttpRequest, response: HttpResponse) -> None:
            try:
                await _settle(first, request, response)
                results = await asyncio.gather(
                    *(_settle(step, request, response) for step in (*rest, entry.handler)),
                    return_exceptions=True,
                )
                for result in results:
                    if isinstance(result, Exception):
                        raise result
            except Exception as exc:
                apply_error(exc, response, f"{entry.method} {entry.path}")

        return controller


class Dispatcher:
    """Resolves a controller through the Router and runs it."""

    def __init__(self, router: Router) -> None:
        self.router = router

    async def dispatch(self, request: HttpRequest, response: HttpResponse) -> HttpResponse:
        controller = self.router.route(request)
        try:
            await _settle(controller, request, response)
        except Exception as exc:
            apply_error(exc, response, f"{request.method} {request.path}")
        if not response.finished:
            response.end()
        return response
