import os
import logging
from logging.handlers import TimedRotatingFileHandler

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "accelerator"):
    logger = logging.getLogger(name)
    level = getattr(logging, os.getenv("LOG_LEVEL", "DEBUG").upper(), logging.DEBUG)
    logger.setLevel(level)

    # Console + daily rotating file, attached once per logger name
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(formatter)
        logger.addHandler(console)

        if os.getenv("LOG_TO_FILE", "true").lower() == "true":
            log_dir = os.getenv("LOG_DIR", "logs")
            os.makedirs(log_dir, exist_ok=True)

            file_handler = TimedRotatingFileHandler(
                filename=os.path.join(log_dir, f"{name}.log"),
                when="midnight",
                interval=1,
                backupCount=7,
                encoding="utf-8",
                utc=False
            )
            file_handler.suffix = "%Y-%m-%d"
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
