"""Roof color validation API.

Serves the model resolver, the inference contract checks and the validated
building store. Startup creates tables and loads the optional model catalog.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roof_api.config import settings
from roof_api.db.database import close_db, init_db
from roof_api.routers import buildings, inference, models
from roof_api.services.model_selector import model_selector

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _load_catalog():
    if not settings.catalog_path:
        logger.info("No model catalog configured, /api/models/select disabled")
        return
    catalog_path = Path(settings.catalog_path)
    if not catalog_path.exists():
        logger.warning("Model catalog not found at %s, selection disabled", catalog_path)
        return
    model_selector.load_from_yaml(str(catalog_path))


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    _load_catalog()
    logger.info("Roof color API ready (palette enforcement %s)",
                "on" if settings.enforce_palette else "off")
    yield
    await close_db()


app = FastAPI(
    title="Roof Color Validation API",
    description="Model routing, inference contract checks and validated roof color records",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(models.router)
app.include_router(inference.router)
app.include_router(buildings.router)


@app.get("/")
async def root():
    return {"service": "roof-color-api", "version": app.version}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
