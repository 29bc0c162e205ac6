import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from docreview.application import CatalogService, PromotionService, ReviewSession
from docreview.config import Settings
from docreview.core.cache import ObjectCache
from docreview.infrastructure import (
    DriveClient,
    InMemoryObjectStore,
    ObjectStore,
    RemoteStoreAdapter,
    token_source_from_credentials,
)
from docreview.routes import cache, files, results, review

LOGGER = logging.getLogger(__name__)


def build_store(settings: Settings) -> ObjectStore:
    if not settings.credentials:
        LOGGER.warning("GOOGLE_CLOUD_CREDENTIALS not set; using an empty in-memory store")
        return InMemoryObjectStore()
    return DriveClient(token_source_from_credentials(settings.credentials), api_base=settings.api_base)


def create_app(settings: Settings | None = None, *, store: ObjectStore | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    missing = settings.missing_folders()
    if missing:
        LOGGER.warning("Folder ids not configured: %s", ", ".join(missing))

    store = store if store is not None else build_store(settings)
    object_cache = ObjectCache(settings.cache_ttl_seconds, max_in_flight=settings.max_parallel_downloads)
    adapter = RemoteStoreAdapter(store, page_size=settings.page_size)
    catalog = CatalogService(
        adapter,
        object_cache,
        markdown_root=settings.markdown_folder_id,
        json_root=settings.json_folder_id,
        result_root=settings.result_folder_id,
    )
    promotion = PromotionService(adapter, object_cache, results_root=settings.result_folder_id)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")
        sweeper = asyncio.create_task(object_cache.run_sweeper())
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            await store.close()

    app = FastAPI(title="Doc Review API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.cache = object_cache
    app.state.catalog = catalog
    app.state.promotion = promotion
    app.state.session = ReviewSession(catalog, promotion)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    app.include_router(files.router, prefix="/api")
    app.include_router(results.router, prefix="/api")
    app.include_router(cache.router, prefix="/api")
    app.include_router(review.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Doc Review API",
                "docs": "/docs",
                "health": "/api/health",
            }
        )

    return app


app = create_app()
