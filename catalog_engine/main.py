# catalog_engine/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_engine.core.config import get_settings
from catalog_engine.core.errors import CatalogError
from catalog_engine.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from catalog_engine.models import catalog as _catalog_models  # noqa: F401
from catalog_engine.models import product as _product_models  # noqa: F401
from catalog_engine.models import change_request as _change_request_models  # noqa: F401

# Routers
from catalog_engine.routers.products import router as products_router
from catalog_engine.routers.variants import router as variants_router
from catalog_engine.routers.change_requests import router as change_requests_router

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to catalog database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME or "Catalog Mutation Engine",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """
    Every service failure becomes exactly one HTTP outcome with a
    human-readable message.
    """
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# --- CORS configuration ---
origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(products_router, prefix=settings.API_V1_STR)
app.include_router(variants_router, prefix=settings.API_V1_STR)
app.include_router(change_requests_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "catalog-mutation-engine"}
