import logging

LOGGER_ROOT = "constrained_markers"
_FORMAT = "%(asctime)s %(levelname)s [%(container)s] %(message)s"


class ContainerFilter(logging.Filter):
    """Tag records with the container token taken from the logger name."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "container"):
            record.container = record.name.rsplit(".", 1)[-1]
        return True


def container_logger(token: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_ROOT}.{token}")


def setup_logger(name: str = LOGGER_ROOT, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler.addFilter(ContainerFilter())
        logger.addHandler(handler)

    return logger


def add_file_handler(logger: logging.Logger, log_path: str) -> logging.FileHandler:
    handler = logging.FileHandler(log_path)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.addFilter(ContainerFilter())
    logger.addHandler(handler)
    return handler
