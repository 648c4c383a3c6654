# menu_import/main.py
# Main app setup

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from menu_import.api.routes import health, imports
from menu_import.config import get_settings
from menu_import.database import init_db
from menu_import.logger import setup_logging
from menu_import.services.storage import get_storage_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Setup: logging, storage folders and database tables
    setup_logging(get_settings().LOG_LEVEL)
    get_storage_service()
    init_db()
    yield


def create_app() -> FastAPI:
    # Create the FastAPI app
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(imports.router)

    return app


# Create the app instance
app = create_app()


@app.get("/")
async def root():
    # Basic info endpoint
    settings = get_settings()
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("menu_import.main:app", host="0.0.0.0", port=8000, reload=True)
