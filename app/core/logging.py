import logging

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Настройка логирования приложения"""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

    # SQLAlchemy пишет запросы сам, если включен echo
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
