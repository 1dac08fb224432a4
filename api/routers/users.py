from __future__ import annotations

import logging

from api.core.http import HttpRequest, HttpResponse
from api.core.router import Route
from api.domain.schema import UniquenessError, ValidationError
from api.routers.middlewares import make_authenticate, parse_request_body
from api.services.user_service import UserService, handle_auth_response

logger = logging.getLogger(__name__)


class UserController:
    """Handlers for sign-up, sign-in and the authenticated ping."""

    def __init__(self, users: UserService) -> None:
        self.users = users
        self.authenticate = make_authenticate(users)

    async def sign_up(self, request: HttpRequest, response: HttpResponse) -> None:
        body = request.state.get("body", {})
        try:
            await self.users.insert_user(body)
        except ValidationError as exc:
            logger.info("Sign-up rejected: %s", exc)
            response.status_code = 400
            handle_auth_response(response, False)
            return
        except UniquenessError as exc:
            logger.info("Sign-up rejected: %s", exc)
            response.status_code = 409
            handle_auth_response(response, False)
            return
        response.status_code = 201
        handle_auth_response(response, True)

    async def sign_in(self, request: HttpRequest, response: HttpResponse) -> None:
        user = await self.users.verify_user(request.state.get("body", {}))
        if not user:
            response.status_code = 401
        handle_auth_response(response, user is not None)

    async def ping_with_auth(self, request: HttpRequest, response: HttpResponse) -> None:
        response.end("Success")

    def routes(self) -> list[Route]:
        return [
            Route("POST", "/sign-up", self.sign_up, (parse_request_body,)),
            Route("POST", "/sign-in", self.sign_in, (parse_request_body,)),
            Route("GET", "/ping-with-auth", self.ping_with_auth, (self.authenticate,)),
        ]
