import logging
from decimal import Decimal

from sqlalchemy import case, exists, select, update

from festival_booking.dto.zone import Zone as ZoneSchema, ZoneCreate, ZoneUpdate
from festival_booking.entities.festival import Festival
from festival_booking.entities.reservation import ReservationLine
from festival_booking.entities.zone import Zone
from festival_booking.repositories.base import BaseRepository
from festival_booking.utils.cache import build_cache_key, cache_data, invalidate_cache
from festival_booking.utils.database import db_session_context, unit_of_work
from festival_booking.utils.exceptions import (
    InsufficientStock,
    InvalidValue,
    UnknownReference,
    ZoneInUse,
)
from festival_booking.utils.pricing import to_money

logger = logging.getLogger(__name__)

ZONE_LIST_CACHE_PREFIX = "zones"


class ZoneRepository(BaseRepository[Zone, ZoneCreate, ZoneUpdate]):
    def __init__(self):
        super().__init__(Zone, "zon")

    async def reserve(self, zone_id: str, count: int) -> Zone:
        """Take ``count`` tables out of a zone in one conditional UPDATE.

        Does not commit. Losing a race for the last tables and plain
        exhaustion both raise InsufficientStock.
        """
        if count is None or count <= 0:
            raise InvalidValue(f"Reserved table count must be positive, got {count}")

        db = db_session_context.get()
        result = db.execute(
            update(Zone)
            .where(Zone.id == zone_id, Zone.available_tables >= count)
            .values(available_tables=Zone.available_tables - count)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info(f"Zone {zone_id} cannot cover {count} tables")
            raise InsufficientStock(zone_id, count)

        return db.get(Zone, zone_id, populate_existing=True)

    async def release(self, zone_id: str, count: int) -> Zone | None:
        """Give ``count`` tables back to a zone, capped at its total. Does not commit."""
        if count is None or count <= 0:
            raise InvalidValue(f"Released table count must be positive, got {count}")

        db = db_session_context.get()
        restored = Zone.available_tables + count
        result = db.execute(
            update(Zone)
            .where(Zone.id == zone_id)
            .values(available_tables=case((restored > Zone.total_tables, Zone.total_tables), else_=restored))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Release of {count} tables skipped, zone {zone_id} no longer exists")
            return None

        return db.get(Zone, zone_id, populate_existing=True)

    async def find_for_festival(self, festival_id: str, zone_ids) -> dict[str, Zone]:
        """Load the requested zones of one festival, raising UnknownReference for any other id."""
        db = db_session_context.get()
        zone_ids = set(zone_ids)
        zones = {
            zone.id: zone
            for zone in db.scalars(
                select(Zone).where(Zone.id.in_(sorted(zone_ids)), Zone.festival_id == festival_id)
            )
        }
        missing = sorted(zone_ids - set(zones))
        if missing:
            raise UnknownReference(f"Unknown zone(s) for festival {festival_id}: {', '.join(missing)}")
        return zones

    async def create(self, obj_in: ZoneCreate) -> Zone:
        price_per_area = obj_in.price_per_area
        if price_per_area is None:
            price_per_area = to_money(Decimal(obj_in.price_per_table) / 4)

        with unit_of_work() as db:
            if db.get(Festival, obj_in.festival_id) is None:
                raise UnknownReference(f"Festival {obj_in.festival_id} not found")

            db_obj = self.model(
                id=self.new_id(),
                festival_id=obj_in.festival_id,
                name=obj_in.name,
                total_tables=obj_in.total_tables,
                available_tables=obj_in.total_tables,
                price_per_table=to_money(obj_in.price_per_table),
                price_per_area=to_money(price_per_area),
            )
            db.add(db_obj)

        self.invalidate_listing(obj_in.festival_id)
        logger.info(f"Zone {db_obj.id} created for festival {obj_in.festival_id} with {obj_in.total_tables} tables")
        return db_obj

    @cache_data(key_prefix=ZONE_LIST_CACHE_PREFIX)
    async def list_by_festival(self, festival_id: str | None = None) -> list[dict]:
        db = db_session_context.get()
        stmt = select(Zone).order_by(Zone.name, Zone.id)
        if festival_id is not None:
            stmt = stmt.where(Zone.festival_id == festival_id)
        return [ZoneSchema.model_validate(zone).model_dump(mode="json") for zone in db.scalars(stmt)]

    async def update(self, zone_id: str, obj_in: ZoneUpdate) -> Zone:
        update_data = obj_in.model_dump(exclude_unset=True, exclude_none=True)

        with unit_of_work() as db:
            zone = await self.lock(zone_id)

            new_total = update_data.pop("total_tables", None)
            if new_total is not None and new_total != zone.total_tables:
                # Tables already reserved stay reserved under the new total
                consumed = Zone.total_tables - Zone.available_tables
                result = db.execute(
                    update(Zone)
                    .where(Zone.id == zone_id, consumed <= new_total)
                    .values(total_tables=new_total, available_tables=new_total - consumed)
                    .execution_options(synchronize_session=False)
                )
                zone = db.get(Zone, zone_id, populate_existing=True)
                if result.rowcount != 1:
                    raise InvalidValue(
                        f"Zone {zone_id} already has {zone.reserved_tables} tables reserved; "
                        f"total cannot drop to {new_total}"
                    )

            for key, value in update_data.items():
                if key.startswith("price_"):
                    value = to_money(value)
                setattr(zone, key, value)

        self.invalidate_listing(zone.festival_id)
        return zone

    async def delete(self, zone_id: str) -> None:
        with unit_of_work() as db:
            zone = await self.lock(zone_id)
            if db.scalar(select(exists().where(ReservationLine.zone_id == zone_id))):
                raise ZoneInUse(f"Zone {zone_id} is referenced by reservations")
            festival_id = zone.festival_id
            db.delete(zone)

        self.invalidate_listing(festival_id)
        logger.info(f"Zone {zone_id} deleted")

    def invalidate_listing(self, festival_id: str | None) -> None:
        invalidate_cache(build_cache_key(ZONE_LIST_CACHE_PREFIX, festival_id))
        invalidate_cache(ZONE_LIST_CACHE_PREFIX)


zone_repository = ZoneRepository()
