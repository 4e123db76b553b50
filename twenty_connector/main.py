import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from twenty_connector.api.router import get_api_router
from twenty_connector.core.config import get_settings


logger = logging.getLogger(__name__)
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("twenty_connector").setLevel(settings.log_level)

# Silence noisy libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex="https?://.*",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(get_api_router())


@app.get("/")
def root() -> dict:
    return {"message": "Twenty connector backend", "api_prefix": settings.api_prefix}
