"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from famboard.api.pin_gate import pin_gate
from famboard.api.v1 import (
    audit, auth_pin, backup, chores, family, habits, meal_plan, member, points, recipes, rewards,
    schedule, settings as settings_api, shopping, tasks, weather,
)
from famboard.application.errors import DashboardError
from famboard.config import get_settings
from famboard.infrastructure.db.session import check_db_connection
from famboard.utils.validation import field_errors_from_pydantic

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Last line of defence: log the traceback, answer with a bare 500"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return JSONResponse({"error": "Internal server error"}, status_code=500)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DashboardError)
    async def dashboard_error(request: Request, exc: DashboardError):
        if exc.status_code >= 500:
            logger.warning("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": "Validation failed", "details": field_errors_from_pydantic(exc.errors())},
            status_code=400,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


def create_app() -> FastAPI:
    """
    Application factory

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="Family Dashboard",
        debug=settings.DEBUG,
    )

    app.add_middleware(ErrorLoggingMiddleware)
    _register_error_handlers(app)

    api_routers = [
        auth_pin, family, member, points, rewards, chores, habits, tasks,
        schedule, shopping, recipes, meal_plan, settings_api, audit, backup, weather,
    ]
    for module in api_routers:
        app.include_router(module.router, dependencies=[Depends(pin_gate)])

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (database reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "famboard.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
