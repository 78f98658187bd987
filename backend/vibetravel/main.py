"""FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.vibetravel.api.routes.cities import router as cities_router
from backend.vibetravel.api.routes.health import router as health_router
from backend.vibetravel.api.routes.metrics import router as metrics_router
from backend.vibetravel.api.routes.plans import router as plans_router
from backend.vibetravel.config import get_settings
from backend.vibetravel.errors import PersistenceError, PersistencePartialFailure, PlannerError

logger = logging.getLogger(__name__)

app = FastAPI(title=get_settings().app_title, version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(cities_router)
app.include_router(plans_router)


@app.exception_handler(PlannerError)
async def planner_error_handler(request: Request, exc: PlannerError) -> JSONResponse:
    """Render lifecycle errors as {"error", "message", "details"}."""
    body = exc.to_dict()

    # Store internals stay in the logs; partial failures look like any failed save
    if isinstance(exc, PersistenceError):
        partial = isinstance(exc, PersistencePartialFailure)
        body = {
            "error": PersistenceError.error_code,
            "message": "Failed to save plan" if partial else exc.message,
            "details": {},
        }

    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Reject malformed request bodies and parameters with 400."""
    logger.warning(
        f"Request validation failed: {request.method} {request.url.path}",
        extra={"structured": {"errors": len(exc.errors())}},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Invalid request",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": get_settings().app_title, "version": "0.1.0"}
