import argparse
import logging

import uvicorn
from dotenv import load_dotenv

from newsfacts.api import create_app
from newsfacts.config import Settings, setup_logging
from newsfacts.db import Database
from newsfacts.pipeline import build_pipeline

logger = logging.getLogger(__name__)


def build_app():
    """Construct the API from the environment. Raises ConfigurationError."""
    load_dotenv()
    settings = Settings.from_env()
    setup_logging(settings)

    pipeline = http = None
    if settings.enable_article_update:
        pipeline, http = build_pipeline(settings)
        db = pipeline.db
    else:
        logger.info("Update endpoint disabled (set ENABLE_ARTICLE_UPDATE=true to enable)")
        db = Database(settings.database_path)

    return create_app(settings, db, pipeline=pipeline, http_client=http)


def main():
    parser = argparse.ArgumentParser(description="Serve the newsfacts article API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    uvicorn.run(build_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
