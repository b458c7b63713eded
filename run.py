import logging

import uvicorn

import config
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

# Silence SQL loggers; statements may carry customer data
for logger_name in ['aiosqlite', 'sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlalchemy.orm']:
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.CRITICAL)
    logger.propagate = False
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(logging.NullHandler())

from db import Database
from web.app import create_app


def main() -> None:
    database = Database(config.DB_URL,
                        echo=config.DB_ECHO,
                        pool_size=config.DB_POOL_SIZE,
                        max_overflow=config.DB_MAX_OVERFLOW,
                        pool_timeout=config.DB_POOL_TIMEOUT,
                        pool_recycle=config.DB_POOL_RECYCLE)
    app = create_app(database)
    logging.info(f"Starting e-shop API on {config.WEBAPP_HOST}:{config.WEBAPP_PORT} ({config.RUNTIME_ENVIRONMENT.value})")
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT)


if __name__ == "__main__":
    main()
