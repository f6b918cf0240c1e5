from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from resume_vault.core.security import user_id_from_request


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Identity travels with the request; nothing global is set
        request.state.user_id = user_id_from_request(request)
        response = await call_next(request)
        return response
