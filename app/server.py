import logging

import uvicorn
from mangum import Mangum

from app.core.config import get_settings
from app.main import app

logger = logging.getLogger(__name__)

# Entry point for on-demand (Lambda) invocation.
handler = Mangum(app, lifespan="off")


def run() -> None:
    settings = get_settings()
    if settings.app_mode == "lambda":
        logger.info("APP_MODE is lambda; not starting a local listener")
        return
    logger.info("Server running locally at http://localhost:%d", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
