import logging

import logging_loki

from festival_booking.utils.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(app_name: str = settings.APP_NAME) -> logging.Logger:
    """Configure the root logger once per process and ship to Loki when configured."""
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL)

    if not any(isinstance(h, logging.StreamHandler) for h in root_logger.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(stream_handler)

    if settings.LOKI_URL and not any(isinstance(h, logging_loki.LokiHandler) for h in root_logger.handlers):
        loki_handler = logging_loki.LokiHandler(
            url=settings.LOKI_URL,
            tags={"application": app_name, "job_name": app_name},
            version="1",
        )
        root_logger.addHandler(loki_handler)

    return logging.getLogger(app_name)
