"""
CORS handling for the /functions/ endpoints.

Only whitelisted origins are echoed back; any other origin receives the first
whitelisted one, so browsers reject the response.
"""
from typing import Dict, List, Optional

from starlette.datastructures import MutableHeaders
from starlette.responses import PlainTextResponse

from ..core.config import settings

FUNCTIONS_PREFIX = "/functions/"

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
ALLOW_METHODS = "POST, GET, OPTIONS, PUT, DELETE"
MAX_AGE = "86400"


def get_cors_headers(origin: Optional[str], allowed: Optional[List[str]] = None) -> Dict[str, str]:
    allowed = allowed if allowed is not None else settings.ALLOWED_ORIGINS
    allowed_origin = origin if origin and origin in allowed else (allowed[0] if allowed else "")
    return {
        "Access-Control-Allow-Origin": allowed_origin,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Max-Age": MAX_AGE,
    }


class FunctionsCORSMiddleware:
    """Answers preflights and decorates responses under /functions/"""

    def __init__(self, app, allowed_origins: Optional[List[str]] = None):
        self.app = app
        self.allowed_origins = allowed_origins

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or not scope["path"].startswith(FUNCTIONS_PREFIX):
            await self.app(scope, receive, send)
            return

        origin = None
        for key, value in scope.get("headers", []):
            if key == b"origin":
                origin = value.decode("latin-1")
                break
        cors_headers = get_cors_headers(origin, self.allowed_origins)

        if scope["method"] == "OPTIONS":
            response = PlainTextResponse("ok", status_code=200, headers=cors_headers)
            await response(scope, receive, send)
            return

        async def send_with_cors(message):
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for key, value in cors_headers.items():
                    headers[key] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)
