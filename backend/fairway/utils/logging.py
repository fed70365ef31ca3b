import logging

from fairway.config import Environment, environment


def create_logger(level: int) -> logging.Logger:
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler.setLevel(level)

    _logger = logging.getLogger("fairway")
    _logger.setLevel(level)
    _logger.addHandler(handler)
    _logger.propagate = False
    return _logger


logger = create_logger(logging.INFO if environment is Environment.PRODUCTION else logging.DEBUG)
