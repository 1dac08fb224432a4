import logging

from fastapi import FastAPI, Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware

from api.core.config import Settings, get_settings
from api.core.http import HttpRequest, HttpResponse
from api.core.router import Dispatcher, Router
from api.repositories.base_repository import Repository
from api.repositories.file_store import FileStore
from api.domain.users import USER_SCHEMA, USERS_COLLECTION
from api.routers.users import UserController
from api.services.user_service import UserService

logger = logging.getLogger(__name__)

HTTP_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, sniffing, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def build_router(users: UserService, *, chain_mode: str = "sequential") -> Router:
    return Router(UserController(users).routes(), chain_mode=chain_mode)


def _to_http_request(request: Request, body: bytes) -> HttpRequest:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return HttpRequest(method=request.method, url=url, headers=dict(request.headers), body=body)


def _to_response(result: HttpResponse) -> Response:
    headers = dict(result.headers)
    media_type = None
    if not any(name.lower() == "content-type" for name in headers):
        media_type = "text/plain"
    return Response(content=result.body, status_code=result.status_code, headers=headers, media_type=media_type)


def create_app(settings: Settings | None = None, users: UserService | None = None) -> FastAPI:
    """Factory compatible with uvicorn --factory."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if users is None:
        store = FileStore(settings.data_dir)
        users = UserService(Repository(USERS_COLLECTION, USER_SCHEMA, store))
    dispatcher = Dispatcher(build_router(users, chain_mode=settings.middleware_chain))

    # every path belongs to the dispatcher, including /docs
    app = FastAPI(title="Flat-file MVC API", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.dispatcher = dispatcher
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    @app.api_route("/{full_path:path}", methods=HTTP_METHODS, include_in_schema=False)
    async def dispatch(request: Request) -> Response:
        incoming = _to_http_request(request, await request.body())
        result = await dispatcher.dispatch(incoming, HttpResponse())
        logger.debug("%s %s -> %s", incoming.method, incoming.path, result.status_code)
        return _to_response(result)

    logger.info(
        "App ready (data_dir=%s, middleware_chain=%s)", settings.data_dir, settings.middleware_chain
    )
    return app
