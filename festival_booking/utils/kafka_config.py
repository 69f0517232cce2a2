import json
import time
import logging
from typing import Dict, Any

from aiokafka import AIOKafkaProducer

from festival_booking.utils.config import settings

logger = logging.getLogger(__name__)


class KafkaConfig:
    def __init__(self):
        self.bootstrap_servers = settings.KAFKA_BOOTSTRAP_SERVERS
        self.booking_events_topic = settings.KAFKA_BOOKING_EVENTS_TOPIC

    @property
    def enabled(self) -> bool:
        return bool(self.bootstrap_servers)

    def create_producer(self) -> AIOKafkaProducer:
        return AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            client_id=settings.APP_NAME,
            value_serializer=lambda v: json.dumps(v, default=str).encode('utf-8'),
            key_serializer=lambda k: k.encode('utf-8') if k else None,
            acks='all',  # Wait for all replicas to acknowledge
            retry_backoff_ms=100,
            request_timeout_ms=30000,
            linger_ms=10
        )


# Global Kafka configuration instance
kafka_config = KafkaConfig()


# Event types
RESERVATION_CREATED = 'reservation_created'
RESERVATION_DELETED = 'reservation_deleted'
RESERVATION_STATUS_CHANGED = 'reservation_status_changed'
INVOICE_ISSUED = 'invoice_issued'
INVOICE_PAID = 'invoice_paid'


# Event schema
class BookingEvent:
    def __init__(self, event_type: str, festival_id: str, reservation_id: str,
                 payload: Dict[str, Any] = None, timestamp: float = None):
        self.event_type = event_type
        self.festival_id = festival_id
        self.reservation_id = reservation_id
        self.payload = payload or {}
        self.timestamp = timestamp or time.time()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_type': self.event_type,
            'festival_id': self.festival_id,
            'reservation_id': self.reservation_id,
            'payload': self.payload,
            'timestamp': self.timestamp
        }
