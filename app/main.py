# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from app.api import api_router
from app.data.database import init_db
from app.domain.errors import StoreFailure
from app.services.cache_service import CacheService
from app.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def create_app(cache: CacheService | None = None, create_tables: bool = True) -> FastAPI:
    """
    cache - wstrzykniety klient (testy); domyslnie tworzony w lifespan z REDIS_URL
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        if create_tables:
            logger.info("=" * 60)
            logger.info("INITIALIZING DATABASE...")
            try:
                init_db()
            except Exception as e:
                logger.error(f"FAILED TO CREATE TABLES: {e}")
                raise

        app.state.cache.start()
        try:
            yield
        finally:
            app.state.cache.close()

    app = FastAPI(
        title="Catalog & Cart Service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.cache = cache or CacheService()

    @app.exception_handler(StoreFailure)
    async def store_failure_handler(request: Request, exc: StoreFailure):
        return JSONResponse(status_code=503, content=exc.to_dict())

    @app.get("/")
    def root():
        return {"status": "ok", "message": "Catalog & Cart API is running", "version": "1.0.0"}

    app.include_router(api_router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
