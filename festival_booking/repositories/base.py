import logging
from typing import TypeVar, Generic, Any
from uuid import uuid4

from sqlalchemy import select

from festival_booking.kafka.producer import booking_producer
from festival_booking.utils.database import db_session_context
from festival_booking.utils.exceptions import NotFound
from festival_booking.utils.kafka_config import BookingEvent

ModelType = TypeVar("ModelType")
CreateSchemaType = TypeVar("CreateSchemaType")
UpdateSchemaType = TypeVar("UpdateSchemaType")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, model: type[ModelType], id_prefix: str, id_field: str = "id"):
        self.model = model
        self.id_prefix = id_prefix
        self.id = id_field

    @property
    def label(self) -> str:
        return self.model.__name__

    def new_id(self) -> str:
        return f"{self.id_prefix}_{uuid4().hex[:8]}"

    async def get(self, id: Any) -> ModelType | None:
        db = db_session_context.get()
        return db.get(self.model, id)

    async def require(self, id: Any) -> ModelType:
        obj = await self.get(id)
        if obj is None:
            raise NotFound(f"{self.label} {id} not found")
        return obj

    async def lock(self, id: Any) -> ModelType:
        """Load a row FOR UPDATE inside the current transaction."""
        db = db_session_context.get()
        obj = db.execute(
            select(self.model)
            .where(getattr(self.model, self.id) == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if obj is None:
            raise NotFound(f"{self.label} {id} not found")
        return obj

    async def publish(self, event_type: str, festival_id: str, reservation_id: str, **payload) -> bool:
        """Publish a booking event once the transaction is committed; failures are only logged."""
        event = BookingEvent(event_type, festival_id, reservation_id, payload)
        return await booking_producer.publish(event)
