"""Server entry point"""

import uvicorn

from bookgraph.bootstrap.config import get_config
from bookgraph.common_logging.setup import get_logger

logger = get_logger(__name__)


def run() -> None:
    config = get_config()
    logger.info(f"Starting bookgraph on {config.service.host}:{config.service.port}")
    uvicorn.run(
        "bookgraph.bootstrap.app:create_app",
        factory=True,
        host=config.service.host,
        port=config.service.port,
        reload=config.service.debug,
        log_level=config.service.log_level.lower(),
    )


if __name__ == "__main__":
    run()
