import logging

from sqlalchemy.exc import IntegrityError

from festival_booking.dto.festival import FestivalCreate
from festival_booking.entities.festival import Editor, Festival
from festival_booking.repositories.base import BaseRepository
from festival_booking.utils.database import unit_of_work
from festival_booking.utils.exceptions import InvalidValue, MissingRequiredField

logger = logging.getLogger(__name__)


class FestivalRepository(BaseRepository[Festival, FestivalCreate, None]):
    def __init__(self):
        super().__init__(Festival, "fes")

    async def create(self, obj_in: FestivalCreate) -> Festival:
        if not obj_in.name or not obj_in.name.strip():
            raise MissingRequiredField("Festival name is required")

        db_obj = self.model(id=self.new_id(), **obj_in.model_dump())
        with unit_of_work() as db:
            db.add(db_obj)
            try:
                db.flush()
            except IntegrityError as e:
                raise InvalidValue(f"A festival named {obj_in.name!r} already exists") from e

        logger.info(f"Festival {db_obj.id} created: {obj_in.name}")
        return db_obj


class EditorRepository(BaseRepository[Editor, None, None]):
    """Editors are looked up only; the catalog that owns them is external."""

    def __init__(self):
        super().__init__(Editor, "edi")

    async def create(self, name: str) -> Editor:
        if not name or not name.strip():
            raise MissingRequiredField("Editor name is required")

        db_obj = self.model(id=self.new_id(), name=name.strip())
        with unit_of_work() as db:
            db.add(db_obj)
            try:
                db.flush()
            except IntegrityError as e:
                raise InvalidValue(f"An editor named {name!r} already exists") from e
        return db_obj


festival_repository = FestivalRepository()
editor_repository = EditorRepository()
