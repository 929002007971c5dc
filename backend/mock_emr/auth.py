import secrets
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.security.utils import get_authorization_scheme_param

from .errors import Unauthorized

UNAUTHORIZED_MESSAGE = "A valid API key must be provided in the `Authorization: Bearer <key>` header."


def _matches(candidate: Optional[str], api_key: str) -> bool:
    if not candidate:
        return False
    return secrets.compare_digest(candidate.encode(), api_key.encode())


def is_authorized(request: Request, api_key: str) -> bool:
    """True when the bearer token, or failing that the ``apiKey`` query
    parameter, equals the shared secret.

    The query fallback exists for the note-viewer link, which is opened as a
    plain browser navigation and cannot carry headers.
    """
    scheme, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() == "bearer" and _matches(token, api_key):
        return True
    return _matches(request.query_params.get("apiKey"), api_key)


async def require_api_key(request: Request, call_next):
    # Runs ahead of routing so the body is never parsed for rejected callers.
    if not is_authorized(request, request.app.state.settings.api_key):
        return JSONResponse(status_code=401, content=Unauthorized(UNAUTHORIZED_MESSAGE).to_body())
    return await call_next(request)
