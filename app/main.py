from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.logging import app_logger
from app.api.v1 import api_router
from app.core.config_file import get_settings
from app.core.exceptions import APIException, to_api_exception
from app.core.reporting.data_source import DataSourceRegistry
from app.core.reporting.exceptions import ReportingError
from app.core.reporting.sources import get_data_source_registry

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    registry = get_data_source_registry()
    available = [info.type.value for info in registry.list_data_sources() if info.available]
    app_logger.info(f"SOC Reports API starting (env={settings.ENV}, data sources={available})")
    yield
    app_logger.info("SOC Reports API shutting down")


app = FastAPI(
    title="SOC Reports API",
    version="0.1.0",
    description="Report data engine for Wazuh and DFIR-IRIS security data",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(exc: APIException) -> JSONResponse:
    # exc.detail is {"error": {...}}; the envelope always carries data: null
    return JSONResponse(status_code=exc.status_code, content={**exc.detail, "data": None})


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    return _error_response(exc)


@app.exception_handler(ReportingError)
async def reporting_exception_handler(request: Request, exc: ReportingError) -> JSONResponse:
    """Map reporting domain errors (not found, access denied, ...) to HTTP errors."""
    return _error_response(to_api_exception(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report validation errors per field path (e.g. ``widgets.0.dataSource``)."""
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        field_path = [str(part) for part in error["loc"]]
        if len(field_path) > 1 and field_path[0] in ("body", "query", "path", "header"):
            field_path = field_path[1:]
        details.setdefault(".".join(field_path), []).append(error["msg"])

    return _error_response(
        APIException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="VALIDATION_ERROR",
            message="Validation failed",
            details=details,
        )
    )


@app.get("/healthz", tags=["system"])
def healthz(registry: DataSourceRegistry = Depends(get_data_source_registry)):
    """Liveness probe, with the availability of each data source."""
    return {
        "status": "ok",
        "env": settings.ENV,
        "dataSources": {info.type.value: info.available for info in registry.list_data_sources()},
    }


app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
