from contextlib import asynccontextmanager
import logging

from atsflow.services.scanner_service import get_scanner

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    # Building the scanner loads config/scoring.yaml, so bad category weights stop startup here.
    scanner = get_scanner()
    yield
    close = getattr(scanner.history, "close", None)
    if callable(close):
        close()
        logger.info("ats_history_closed")
