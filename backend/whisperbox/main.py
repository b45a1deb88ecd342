"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models
from .auth import router as auth_router
from .database import engine
from .routers.ai import router as ai_router
from .routers.messages import router as messages_router
from .routers.settings import router as settings_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Whisperbox Backend", version="0.1.0")
app.include_router(auth_router)
app.include_router(messages_router)
app.include_router(settings_router)
app.include_router(ai_router)


def error_envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_envelope(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report only the first schema violation."""

    errors = exc.errors()
    if not errors:
        return error_envelope(status.HTTP_400_BAD_REQUEST, "Invalid request")

    first = errors[0]
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if first.get("type") != "value_error" and field:
        message = f"{field}: {message}"
    return error_envelope(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server error")


@app.on_event("startup")
async def on_startup() -> None:
    """Ensure database tables exist."""

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Readiness check for uptime monitors."""

    return {"status": "ok"}
