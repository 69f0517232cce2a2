import os
from dotenv import load_dotenv

load_dotenv()


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    return value or None


class Settings():
    APP_NAME: str = os.getenv('APP_NAME', 'festival_booking')
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    DATABASE_URL: str = os.getenv('DATABASE_URL') or 'sqlite:///./festival_booking.db'

    # Optional integrations, disabled when unset
    REDIS_HOST: str | None = _optional('REDIS_HOST')
    REDIS_PORT: int = int(os.getenv('REDIS_PORT') or 6379)
    CACHE_EXPIRE_SECONDS: int = int(os.getenv('CACHE_EXPIRE_SECONDS') or 3600)

    KAFKA_BOOTSTRAP_SERVERS: str | None = _optional('KAFKA_BOOTSTRAP_SERVERS')
    KAFKA_BOOKING_EVENTS_TOPIC: str = os.getenv('KAFKA_BOOKING_EVENTS_TOPIC', 'festival-booking-events')

    LOKI_URL: str | None = _optional('LOKI_URL')
    OTLP_ENDPOINT: str | None = _optional('OTLP_ENDPOINT')

    INVOICE_NUMBER_PREFIX: str = os.getenv('INVOICE_NUMBER_PREFIX', 'FAC')

settings = Settings()
