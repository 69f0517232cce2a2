from datetime import datetime

from festival_booking.dto import BaseSchema
from festival_booking.workflow import InvoiceStatus


class Invoice(BaseSchema):
    id: str
    reservation_id: str
    number: str
    amount_due: float
    status: InvoiceStatus
    issued_at: datetime
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
