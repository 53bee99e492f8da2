import logging
import asyncio
import sys
from dotenv import load_dotenv

from newsfacts.config import Settings, setup_logging
from newsfacts.errors import ConfigurationError, PersistenceError
from newsfacts.pipeline import build_pipeline


# Load env
load_dotenv()

logger = logging.getLogger(__name__)

async def main() -> int:
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Invalid configuration: {e}")
        return 2

    setup_logging(settings)
    logger.info("Starting news ingestion...")

    try:
        pipeline, http = build_pipeline(settings)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        report = await pipeline.run()
    except PersistenceError as e:
        logger.error(f"Saving articles failed, nothing was written: {e}")
        return 1
    finally:
        await http.close()

    for source_id, error in report.feed_errors.items():
        logger.warning(f"Feed {source_id} contributed no items: {error}")
    logger.info(f"✅ Saved {report.persisted} new articles")
    return 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
