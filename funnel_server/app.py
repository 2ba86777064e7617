"""FastAPI application serving the funnel builder engine."""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()  # load environment variables from .env file, before kv_db reads FUNNEL_DB_PATH

from funnel_backbone.adapters.storage import KeyValueStore
from funnel_backbone.persistence import STORAGE_KEY
from funnel_backbone.store import FunnelStore
from funnel_server.funnel_routes import router as funnel_router
from funnel_server.kv_db import FUNNEL_DB_PATH, SqliteKeyValueStore

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# CORS origins - configurable via environment variable
# Use comma-separated values for multiple origins, or "*" for all (development only)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# key the funnel is saved under in the key-value store
FUNNEL_STORAGE_KEY = os.getenv("FUNNEL_STORAGE_KEY", STORAGE_KEY)

VERSION = "0.1.0"


def create_app(storage: KeyValueStore | None = None) -> FastAPI:
    """Build the application.

    Args:
        storage: key-value medium for the funnel. If None, a SQLite store at
            FUNNEL_DB_PATH is opened when the app starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Own the funnel store for the lifetime of the app."""
        medium = storage if storage is not None else SqliteKeyValueStore(FUNNEL_DB_PATH)
        store = FunnelStore(medium, storage_key=FUNNEL_STORAGE_KEY)
        app.state.funnel_store = store
        logger.info("Funnel store opened on %r", medium)
        yield
        store.close()

    app = FastAPI(
        title="Funnel Builder API",
        description="Funnel graph state, validation and persistence for the funnel builder canvas",
        version=VERSION,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # include routes
    app.include_router(funnel_router, prefix="/api")

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": VERSION,
            "storage_key": FUNNEL_STORAGE_KEY,
            "endpoints": {
                "funnel": "/api/funnel",
                "node_types": "/api/funnel/node-types",
                "validation": "/api/funnel/validation",
                "export": "/api/funnel/export",
                "import": "/api/funnel/import",
            },
        }

    return app


app = create_app()


def main():
    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    main()
