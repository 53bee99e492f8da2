import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from newsfacts.config import Settings
from newsfacts.db import Database
from newsfacts.errors import ConfigurationError
from newsfacts.http_client import HTTPClient
from newsfacts.pipeline import Pipeline

logger = logging.getLogger(__name__)


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


DB = Annotated[Database, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]


def create_app(
    settings: Settings,
    db: Database,
    pipeline: Optional[Pipeline] = None,
    http_client: Optional[HTTPClient] = None,
) -> FastAPI:
    """
    Build the API around already-constructed collaborators.
    The pipeline is only required when the update trigger is enabled.
    """
    if settings.enable_article_update and pipeline is None:
        raise ConfigurationError("ENABLE_ARTICLE_UPDATE is true but no pipeline was configured")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if http_client is not None:
            await http_client.close()

    app = FastAPI(title="newsfacts", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.pipeline = pipeline

    @app.get("/api/articles")
    async def list_articles(db: DB, limit: int = Query(20, ge=0), offset: int = Query(0, ge=0)):
        return JSONResponse(db.list_articles(limit=limit, offset=offset))

    def article_response(db: Database, article_id: Optional[str]):
        article = db.get_article(article_id) if article_id else None
        if article is None:
            return PlainTextResponse("Article not found", status_code=400)
        return JSONResponse(article)

    @app.get("/api/article")
    async def get_article(db: DB, id: Optional[str] = None):
        return article_response(db, id)

    @app.get("/api/articles/update")
    async def update_articles(request: Request, settings: AppSettings):
        if not settings.enable_article_update:
            return JSONResponse({"message": "Update endpoint is disabled"}, status_code=400)

        # PersistenceError propagates as a 500
        report = await request.app.state.pipeline.run()
        return JSONResponse({"message": "Articles fetched successfully", "persisted": report.persisted})

    # Registered after /api/articles/update so the fixed path matches first
    @app.get("/api/articles/{article_id}")
    async def get_article_by_path(db: DB, article_id: str, id: Optional[str] = None):
        return article_response(db, id or article_id)

    return app
