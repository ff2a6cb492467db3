import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from paperblog.routers import pages, posts
from paperblog.settings import Settings, settings

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Dev server: renders pages from the content directory on every request."""
    app_settings = app_settings or settings
    app = FastAPI(title="PaperBlog", description="PaperBlog dev server")
    app.state.settings = app_settings

    @app.get("/api")
    async def root():
        return {"message": "PaperBlog dev server is running"}

    app.include_router(posts.router)
    app.include_router(pages.router)

    public = app_settings.public_path
    if public.is_dir():
        app.mount("/", StaticFiles(directory=public), name="public")
        logger.info(f"Serving public files from {public}")

    return app


def create_preview_app(output_dir: Path | str) -> FastAPI:
    """Serve an already built site, falling back to 404.html."""
    app = FastAPI(title="PaperBlog preview")
    app.mount("/", StaticFiles(directory=output_dir, html=True), name="site")
    return app


configure_logging(settings.LOG_LEVEL)
app = create_app()
