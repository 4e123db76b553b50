from fastapi import APIRouter

from twenty_connector.api.routes import health, operations, options
from twenty_connector.core.config import get_settings


def get_api_router() -> APIRouter:
    settings = get_settings()
    router = APIRouter(prefix=settings.api_prefix)
    router.include_router(health.router)
    router.include_router(operations.router)  # resource:operation batch execution
    router.include_router(options.router)  # Load options (pick lists, metadata fields)
    return router
