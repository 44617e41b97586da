from __future__ import annotations

import logging

import uvicorn

from .settings import load_config

logger = logging.getLogger("datamapper")


def main() -> None:
    from .main import create_app

    config = load_config()
    app = create_app(config)
    logger.info("Server running on port %d", config.port)
    logger.info("Make sure Ollama is running on %s", config.ollama_url)
    uvicorn.run(app, host=config.host, port=config.port, log_level="info")


if __name__ == "__main__":
    main()
