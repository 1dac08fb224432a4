"""Pre-handler steps shared by the user routes."""
from __future__ import annotations

import base64
import binascii
import json

from api.core.http import HttpError, HttpRequest, HttpResponse
from api.services.user_service import UserService


async def parse_request_body(request: HttpRequest, response: HttpResponse) -> None:
    """Decode a JSON object body into request.state["body"]."""
    raw = request.body or b""
    if not raw.strip():
        request.state["body"] = {}
        return
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise HttpError(400, "Invalid JSON body")
    if not isinstance(payload, dict):
        raise HttpError(400, "JSON body must be an object")
    request.state["body"] = payload


def _basic_credentials(header: str | None) -> tuple[str, str] | None:
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "basic" or not token:
        return None
    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


def make_authenticate(users: UserService):
    """Build the middleware that requires valid HTTP Basic credentials."""

    async def authenticate(request: HttpRequest, response: HttpResponse) -> None:
        credentials = _basic_credentials(request.header("authorization"))
        user = None
        if credentials:
            username, password = credentials
            user = await users.verify_user({"username": username, "password": password})
        if not user:
            raise HttpError(401, "Unauthorized", headers={"WWW-Authenticate": 'Basic realm="api"'})
        request.state["user"] = user

    return authenticate
