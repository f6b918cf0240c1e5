import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from resume_vault.core.config import settings
from resume_vault.core.db import create_all, engine
from resume_vault.core.errors import VaultError
from resume_vault.middleware.auth import AuthMiddleware
from resume_vault.web.routers.auth import router as auth_router
from resume_vault.web.routers.resumes import router as resumes_router
from resume_vault.web.routers.applications import router as applications_router
from resume_vault.web.routers.dashboard import router as dashboard_router

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables if not exist
    await create_all()
    yield
    await engine.dispose()


app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan)

app.add_middleware(AuthMiddleware)
if settings.FRONTEND_URL:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Routers
app.include_router(auth_router)
app.include_router(resumes_router)
app.include_router(applications_router)
app.include_router(dashboard_router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


# -------------------
# Exception Handlers
# -------------------

_DEFAULT_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    405: "Method Not Allowed",
    413: "Payload Too Large",
    415: "Unsupported Media Type",
}

_ERROR_CODES = {
    400: "validation_error",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
}


def _error(code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse({"error": error, "detail": message}, status_code=code)


@app.exception_handler(VaultError)
async def vault_error_handler(request: Request, exc: VaultError):
    return _error(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Report the first offending field; the full list only in debug
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = f"{field}: {first.get('msg')}" if field else "Validation Error"
    body = {"error": "validation_error", "detail": message}
    if settings.DEBUG:
        body["errors"] = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]
    return JSONResponse(body, status_code=400)


@app.exception_handler(HTTPException)
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = exc.status_code
    message = getattr(exc, "detail", None) or _DEFAULT_MESSAGES.get(code) or "Unexpected error"
    return _error(code, _ERROR_CODES.get(code, "error"), message)


# Only install a global 500 handler when NOT in debug mode.
if not settings.DEBUG:
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "error", "An internal server error occurred.")
