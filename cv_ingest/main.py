import logging

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from cv_ingest.api.routes.parse import router as cv_router
from cv_ingest.config import get_settings

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

VERSION = "0.1.0"
DESCRIPTION = "Deterministic resume parsing, schema normalization and dual-source fusion into one canonical CV record"

app = FastAPI(title=settings.app_name, description=DESCRIPTION, version=VERSION)
app.include_router(cv_router)


@app.get("/", tags=["health"])
def root():
    return {"service": settings.app_name, "status": "running"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


def custom_openapi():
    """OpenAPI schema built once, titled from settings."""
    if app.openapi_schema:
        return app.openapi_schema
    app.openapi_schema = get_openapi(
        title=settings.app_name,
        version=VERSION,
        description=DESCRIPTION,
        routes=app.routes,
    )
    return app.openapi_schema


app.openapi = custom_openapi
