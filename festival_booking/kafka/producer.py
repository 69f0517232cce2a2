import logging
from aiokafka.errors import KafkaError
from festival_booking.utils.kafka_config import kafka_config, BookingEvent

logger = logging.getLogger(__name__)


class BookingEventProducer:
    def __init__(self):
        self.producer = None

    async def connect(self):
        """Initialize Kafka producer connection"""
        if not kafka_config.enabled:
            return
        try:
            self.producer = kafka_config.create_producer()
            await self.producer.start()
            logger.info("AIOKafka producer connected successfully")
        except KafkaError as e:
            logger.error(f"Failed to connect to Kafka: {e}")
            self.producer = None

    async def publish(self, event: BookingEvent) -> bool:
        """Publish a booking event, keyed by festival so one festival stays ordered"""
        if not kafka_config.enabled:
            logger.debug(f"Kafka disabled, dropping {event.event_type} for {event.reservation_id}")
            return False

        if not self.producer:
            await self.connect()
            if not self.producer:
                logger.error("Kafka producer not available")
                return False

        try:
            record_metadata = await self.producer.send_and_wait(
                kafka_config.booking_events_topic,
                key=event.festival_id,
                value=event.to_dict(),
            )
            logger.info(f"{event.event_type} for reservation {event.reservation_id} sent to topic "
                        f"{record_metadata.topic} partition {record_metadata.partition} "
                        f"offset {record_metadata.offset}")
            return True

        except KafkaError as e:
            logger.error(f"Failed to send {event.event_type} to Kafka: {e}")
            return False

    async def close(self):
        """Close the producer connection"""
        if self.producer:
            await self.producer.stop()
            self.producer = None
            logger.info("Kafka producer closed")


# Global producer instance
booking_producer = BookingEventProducer()
