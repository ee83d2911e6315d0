"""
CineCritic API — FastAPI application entry point.

Routers are registered here. Each service lives in cinecritic/api/.
Domain errors from the service layer are rendered into the standard
envelope by the exception handlers below.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from cinecritic.api import auth, movies, reviews, users
from cinecritic.core.config import settings
from cinecritic.core.errors import DomainError
from cinecritic.schemas.common import ErrorResponse

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CineCritic API",
    description="Movie reviews with separate critic and audience ratings.",
    version="0.1.0",
    docs_url="/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_DOCS else None,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error handlers ────────────────────────────────────────────────────────────
def _error_body(message: str, code: str, detail: object = None) -> dict:
    return ErrorResponse(message=message, code=code, detail=detail).model_dump(exclude_none=True)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.code),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            message,
            "VALIDATION_ERROR",
            [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors],
        ),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "Internal server error",
            "INTERNAL_ERROR",
            str(exc) if settings.is_dev else None,
        ),
    )


# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(auth.router,    prefix=f"{settings.API_PREFIX}/auth",    tags=["auth"])
app.include_router(movies.router,  prefix=f"{settings.API_PREFIX}/movies",  tags=["movies"])
app.include_router(reviews.router, prefix=f"{settings.API_PREFIX}/reviews", tags=["reviews"])
app.include_router(users.router,   prefix=f"{settings.API_PREFIX}/users",   tags=["users"])


# ── Health check ──────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
def health_check() -> dict:
    """Liveness probe. Returns 200 when the server is up."""
    return {"status": "ok", "version": app.version, "env": settings.APP_ENV}
