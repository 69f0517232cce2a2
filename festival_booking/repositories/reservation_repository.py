import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm.attributes import set_committed_value

from festival_booking.dto.reservation import (
    ReservationCreate,
    ReservationLineIn,
    ReservationUpdate,
)
from festival_booking.entities.festival import Editor, Festival
from festival_booking.entities.reservation import Reservation, ReservationLine
from festival_booking.entities.zone import Zone
from festival_booking.repositories.base import BaseRepository
from festival_booking.repositories.zone_repository import zone_repository
from festival_booking.utils import kafka_config as events
from festival_booking.utils.database import db_session_context, unit_of_work
from festival_booking.utils.exceptions import (
    BookingError,
    IllegalTransition,
    MissingRequiredField,
    NotFound,
    ReservationLocked,
    UnknownReference,
)
from festival_booking.utils.observability import record_reservation_request, record_tables
from festival_booking.utils.pricing import PricedLine, compute_prices, merge_lines
from festival_booking.workflow import (
    INITIAL_STATUS,
    TransitionTrigger,
    WorkflowStatus,
    ensure_transition,
    trigger_for_direct_update,
)

logger = logging.getLogger(__name__)


def _merge_requested(lines: list[ReservationLineIn]) -> dict[str, tuple[int, Decimal]]:
    return merge_lines((line.zone_id, line.table_count, line.area) for line in lines)


def _priced(merged: dict[str, tuple[int, Decimal]], zones: dict[str, Zone]) -> list[PricedLine]:
    return [
        PricedLine(tables, area, zones[zone_id].price_per_table, zones[zone_id].price_per_area)
        for zone_id, (tables, area) in merged.items()
    ]


class ReservationRepository(BaseRepository[Reservation, ReservationCreate, ReservationUpdate]):
    def __init__(self):
        super().__init__(Reservation, "res")

    async def create(self, obj_in: ReservationCreate) -> Reservation:
        """Validate, take stock for every line and persist the reservation in one transaction.

        Zones are reserved in zone id order. Any failure rolls the whole
        transaction back, including decrements already applied.
        """
        try:
            if not obj_in.editor_id:
                raise MissingRequiredField("editor_id is required")
            if not obj_in.festival_id:
                raise MissingRequiredField("festival_id is required")
            if not obj_in.lines:
                raise MissingRequiredField("At least one reservation line is required")

            merged = _merge_requested(obj_in.lines)

            with unit_of_work() as db:
                if db.get(Editor, obj_in.editor_id) is None:
                    raise UnknownReference(f"Editor {obj_in.editor_id} not found")
                if db.get(Festival, obj_in.festival_id) is None:
                    raise UnknownReference(f"Festival {obj_in.festival_id} not found")
                zones = await zone_repository.find_for_festival(obj_in.festival_id, merged)

                prices = compute_prices(_priced(merged, zones), obj_in.tables_offered, obj_in.monetary_discount)

                for zone_id in sorted(merged):
                    await zone_repository.reserve(zone_id, merged[zone_id][0])

                reservation = Reservation(
                    id=self.new_id(),
                    editor_id=obj_in.editor_id,
                    festival_id=obj_in.festival_id,
                    tables_offered=obj_in.tables_offered,
                    monetary_discount=prices.monetary_discount,
                    editor_presents_games=obj_in.editor_presents_games,
                    total_price=prices.total_price,
                    final_price=prices.final_price,
                    workflow_status=INITIAL_STATUS,
                    lines=[
                        ReservationLine(zone_id=zone_id, table_count=tables, area=area)
                        for zone_id, (tables, area) in sorted(merged.items())
                    ],
                )
                db.add(reservation)
                db.flush()
        except BookingError as e:
            record_reservation_request(e.code.value)
            raise

        table_total = sum(tables for tables, _ in merged.values())
        record_reservation_request("created")
        record_tables(obj_in.festival_id, reserved=table_total)
        zone_repository.invalidate_listing(obj_in.festival_id)
        logger.info(f"Reservation {reservation.id} created with {table_total} tables for editor {obj_in.editor_id}")
        await self.publish(
            events.RESERVATION_CREATED, obj_in.festival_id, reservation.id,
            editor_id=obj_in.editor_id, tables=table_total, final_price=str(prices.final_price),
        )
        return reservation

    async def search(self, festival_id: str | None = None, editor_id: str | None = None) -> list[Reservation]:
        db = db_session_context.get()
        stmt = select(Reservation).order_by(Reservation.created_at.desc(), Reservation.id.desc())
        if festival_id is not None:
            stmt = stmt.where(Reservation.festival_id == festival_id)
        if editor_id is not None:
            stmt = stmt.where(Reservation.editor_id == editor_id)
        return list(db.scalars(stmt))

    async def _compare_and_set(
        self, reservation: Reservation, expected: WorkflowStatus, target: WorkflowStatus
    ) -> None:
        """Write ``target`` only if the row still holds ``expected``. Does not commit.

        A status read before the write can be stale on databases where
        ``FOR UPDATE`` is a no-op, so the check is repeated in the UPDATE.
        """
        db = db_session_context.get()
        result = db.execute(
            update(Reservation)
            .where(Reservation.id == reservation.id, Reservation.workflow_status == expected)
            .values(workflow_status=target)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            current = db.scalar(select(Reservation.workflow_status).where(Reservation.id == reservation.id))
            if current is None:
                raise NotFound(f"Reservation {reservation.id} not found")
            logger.info(f"Reservation {reservation.id} left {expected.value} concurrently, now {current.value}")
            raise IllegalTransition(
                f"Reservation {reservation.id} is {current.value}, expected {expected.value}"
            )
        set_committed_value(reservation, "workflow_status", target)

    async def transition(
        self, reservation: Reservation, target: WorkflowStatus, trigger: TransitionTrigger | None
    ) -> WorkflowStatus:
        """Move a reservation along the workflow and return its previous status. Does not commit."""
        previous = reservation.workflow_status
        ensure_transition(previous, target, trigger)
        await self._compare_and_set(reservation, previous, target)
        return previous

    async def _release_lines(self, reservation: Reservation) -> int:
        released = 0
        for line in sorted(reservation.lines, key=lambda line: line.zone_id):
            await zone_repository.release(line.zone_id, line.table_count)
            released += line.table_count
        return released

    async def delete(self, reservation_id: str) -> dict:
        """Delete a reservation with its lines and invoice, giving its tables back."""
        with unit_of_work() as db:
            reservation = await self.lock(reservation_id)
            festival_id = reservation.festival_id

            status = reservation.workflow_status
            # Pins the status the release decision below is based on
            await self._compare_and_set(reservation, status, status)

            released = 0
            # Cancelled reservations gave their tables back already
            if status != WorkflowStatus.ANNULEE:
                released = await self._release_lines(reservation)
            db.delete(reservation)

        if released:
            record_tables(festival_id, released=released)
            zone_repository.invalidate_listing(festival_id)
        logger.info(f"Reservation {reservation_id} deleted, {released} tables released")
        await self.publish(events.RESERVATION_DELETED, festival_id, reservation_id, released_tables=released)
        return {"id": reservation_id, "deleted": True, "released_tables": released}

    async def update_status(self, reservation_id: str, new_status: WorkflowStatus) -> Reservation:
        """Apply a direct status edit; only cancellation can be requested this way."""
        new_status = WorkflowStatus(new_status)

        with unit_of_work():
            reservation = await self.lock(reservation_id)
            previous = await self.transition(reservation, new_status, trigger_for_direct_update(new_status))

            released = 0
            if new_status == WorkflowStatus.ANNULEE:
                released = await self._release_lines(reservation)

        festival_id = reservation.festival_id
        if released:
            record_tables(festival_id, released=released)
            zone_repository.invalidate_listing(festival_id)
        logger.info(f"Reservation {reservation_id} moved from {previous.value} to {new_status.value}")
        await self.publish(
            events.RESERVATION_STATUS_CHANGED, festival_id, reservation_id,
            previous_status=previous.value, workflow_status=new_status.value,
        )
        return reservation

    async def update_fields(self, reservation_id: str, obj_in: ReservationUpdate) -> Reservation:
        """Update discounts and the presentation flag, then reprice from the current lines."""
        update_data = obj_in.model_dump(exclude_unset=True, exclude_none=True)

        with unit_of_work() as db:
            reservation = await self.lock(reservation_id)
            for key, value in update_data.items():
                setattr(reservation, key, value)

            zones = {line.zone_id: line.zone for line in reservation.lines}
            merged = {line.zone_id: (line.table_count, Decimal(line.area)) for line in reservation.lines}
            prices = compute_prices(_priced(merged, zones), reservation.tables_offered, reservation.monetary_discount)
            reservation.monetary_discount = prices.monetary_discount
            reservation.total_price = prices.total_price
            reservation.final_price = prices.final_price
            db.flush()

        return reservation

    async def replace_lines(self, reservation_id: str, lines: list[ReservationLineIn]) -> Reservation:
        """Swap the lines of a reservation still in ``present``, moving only the stock deltas."""
        if not lines:
            raise MissingRequiredField("At least one reservation line is required")
        merged = _merge_requested(lines)

        with unit_of_work() as db:
            reservation = await self.lock(reservation_id)
            if reservation.workflow_status != WorkflowStatus.PRESENT:
                raise ReservationLocked(
                    f"Reservation {reservation_id} is {reservation.workflow_status.value}; lines can no longer change"
                )
            await self._compare_and_set(reservation, WorkflowStatus.PRESENT, WorkflowStatus.PRESENT)

            zones = await zone_repository.find_for_festival(reservation.festival_id, merged)
            prices = compute_prices(_priced(merged, zones), reservation.tables_offered, reservation.monetary_discount)

            current = {line.zone_id: line for line in reservation.lines}
            reserved = released = 0
            for zone_id in sorted(set(current) | set(merged)):
                old_count = current[zone_id].table_count if zone_id in current else 0
                delta = merged.get(zone_id, (0, None))[0] - old_count
                if delta > 0:
                    await zone_repository.reserve(zone_id, delta)
                    reserved += delta
                elif delta < 0:
                    await zone_repository.release(zone_id, -delta)
                    released -= delta

            for zone_id, line in current.items():
                if zone_id not in merged:
                    reservation.lines.remove(line)
            for zone_id, (tables, area) in sorted(merged.items()):
                if zone_id in current:
                    current[zone_id].table_count = tables
                    current[zone_id].area = area
                else:
                    reservation.lines.append(ReservationLine(zone_id=zone_id, table_count=tables, area=area))

            reservation.total_price = prices.total_price
            reservation.final_price = prices.final_price
            db.flush()

        festival_id = reservation.festival_id
        record_tables(festival_id, reserved=reserved, released=released)
        zone_repository.invalidate_listing(festival_id)
        logger.info(f"Reservation {reservation_id} lines replaced: +{reserved}/-{released} tables")
        return reservation


reservation_repository = ReservationRepository()
