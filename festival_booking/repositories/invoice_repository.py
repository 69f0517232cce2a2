import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from festival_booking.entities.invoice import Invoice, InvoiceSequence
from festival_booking.repositories.base import BaseRepository
from festival_booking.repositories.reservation_repository import reservation_repository
from festival_booking.utils import kafka_config as events
from festival_booking.utils.config import settings
from festival_booking.utils.database import db_session_context, unit_of_work
from festival_booking.utils.exceptions import (
    BookingError,
    IllegalTransition,
    InvoiceAlreadyExists,
    NotFound,
)
from festival_booking.utils.observability import record_invoice_operation
from festival_booking.workflow import (
    PAYABLE_STATUSES,
    InvoiceStatus,
    TransitionTrigger,
    WorkflowStatus,
)

logger = logging.getLogger(__name__)

INVOICE_SEQUENCE = "invoice"


class InvoiceRepository(BaseRepository[Invoice, None, None]):
    def __init__(self):
        super().__init__(Invoice, "inv")

    async def next_number(self) -> str:
        """Allocate the next invoice number inside the current transaction."""
        db = db_session_context.get()
        result = db.execute(
            update(InvoiceSequence)
            .where(InvoiceSequence.name == INVOICE_SEQUENCE)
            .values(current_value=InvoiceSequence.current_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.add(InvoiceSequence(name=INVOICE_SEQUENCE, current_value=1))
            db.flush()

        value = db.scalar(
            select(InvoiceSequence.current_value).where(InvoiceSequence.name == INVOICE_SEQUENCE)
        )
        return f"{settings.INVOICE_NUMBER_PREFIX}-{value:06d}"

    async def get_by_reservation(self, reservation_id: str) -> Invoice:
        db = db_session_context.get()
        invoice = db.scalar(select(Invoice).where(Invoice.reservation_id == reservation_id))
        if invoice is None:
            await reservation_repository.require(reservation_id)
            raise NotFound(f"Reservation {reservation_id} has no invoice")
        return invoice

    def _has_invoice(self, reservation_id: str) -> bool:
        db = db_session_context.get()
        return db.scalar(select(Invoice.id).where(Invoice.reservation_id == reservation_id)) is not None

    async def issue(self, reservation_id: str) -> Invoice:
        """Create the single invoice of a reservation and move it to ``facture``."""
        try:
            with unit_of_work() as db:
                reservation = await reservation_repository.lock(reservation_id)
                if self._has_invoice(reservation_id):
                    raise InvoiceAlreadyExists(reservation_id)

                try:
                    await reservation_repository.transition(
                        reservation, WorkflowStatus.FACTURE, TransitionTrigger.INVOICE_ISSUED
                    )
                except IllegalTransition as e:
                    # A concurrent issue may have taken the status first
                    if self._has_invoice(reservation_id):
                        raise InvoiceAlreadyExists(reservation_id) from e
                    raise

                invoice = Invoice(
                    id=self.new_id(),
                    reservation_id=reservation_id,
                    number=await self.next_number(),
                    amount_due=reservation.final_price,
                    status=InvoiceStatus.ISSUED,
                    issued_at=datetime.now(timezone.utc),
                )
                db.add(invoice)
                try:
                    db.flush()
                except IntegrityError as e:
                    raise InvoiceAlreadyExists(reservation_id) from e
        except BookingError as e:
            record_invoice_operation("issue", e.code.value)
            raise

        record_invoice_operation("issue", "issued")
        festival_id = reservation.festival_id
        logger.info(f"Invoice {invoice.number} issued for reservation {reservation_id}")
        await self.publish(
            events.INVOICE_ISSUED, festival_id, reservation_id,
            invoice_id=invoice.id, number=invoice.number, amount_due=str(invoice.amount_due),
        )
        return invoice

    async def mark_paid(self, invoice_id: str) -> Invoice:
        """Mark an invoice paid and move its reservation to ``facture_payee``.

        Paying an invoice that is already paid returns it untouched, so the
        first payment date is kept.
        """
        try:
            with unit_of_work() as db:
                invoice = await self.require(invoice_id)
                if invoice.status == InvoiceStatus.PAID:
                    logger.info(f"Invoice {invoice.number} already paid")
                    return invoice

                # Reservation before invoice, the order delete locks them in
                reservation = await reservation_repository.lock(invoice.reservation_id)
                invoice = await self.lock(invoice_id)
                if reservation.workflow_status not in PAYABLE_STATUSES:
                    raise IllegalTransition(
                        f"Reservation {reservation.id} is {reservation.workflow_status.value}; "
                        "its invoice cannot be paid"
                    )

                result = db.execute(
                    update(Invoice)
                    .where(Invoice.id == invoice_id, Invoice.status == InvoiceStatus.ISSUED)
                    .values(status=InvoiceStatus.PAID, paid_at=datetime.now(timezone.utc))
                    .execution_options(synchronize_session=False)
                )
                db.refresh(invoice)
                if result.rowcount != 1:
                    logger.info(f"Invoice {invoice.number} already paid")
                    return invoice

                if reservation.workflow_status == WorkflowStatus.FACTURE:
                    await reservation_repository.transition(
                        reservation, WorkflowStatus.FACTURE_PAYEE, TransitionTrigger.INVOICE_PAID
                    )
                if reservation.paid_at is None:
                    reservation.paid_at = invoice.paid_at
        except BookingError as e:
            record_invoice_operation("pay", e.code.value)
            raise

        record_invoice_operation("pay", "paid")
        logger.info(f"Invoice {invoice.number} paid")
        await self.publish(
            events.INVOICE_PAID, reservation.festival_id, reservation.id,
            invoice_id=invoice.id, number=invoice.number, paid_at=invoice.paid_at,
        )
        return invoice


invoice_repository = InvoiceRepository()
