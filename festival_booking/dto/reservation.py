from datetime import datetime
from decimal import Decimal

from festival_booking.dto import BaseSchema
from festival_booking.workflow import WorkflowStatus


class ReservationLineIn(BaseSchema):
    zone_id: str
    table_count: int
    area: Decimal = Decimal("0")


class ReservationCreate(BaseSchema):
    # Left optional so that a missing reference surfaces as MissingRequiredField
    editor_id: str | None = None
    festival_id: str | None = None
    lines: list[ReservationLineIn] | None = None
    tables_offered: int = 0
    monetary_discount: Decimal = Decimal("0")
    editor_presents_games: bool = False


class ReservationUpdate(BaseSchema):
    tables_offered: int | None = None
    monetary_discount: Decimal | None = None
    editor_presents_games: bool | None = None


class ReservationStatusUpdate(BaseSchema):
    workflow_status: WorkflowStatus


class ReservationLinesReplace(BaseSchema):
    lines: list[ReservationLineIn]


class ReservationLine(BaseSchema):
    zone_id: str
    table_count: int
    area: float


class Reservation(BaseSchema):
    id: str
    editor_id: str
    festival_id: str
    tables_offered: int
    monetary_discount: float
    editor_presents_games: bool
    total_price: float
    final_price: float
    workflow_status: WorkflowStatus
    paid_at: datetime | None = None
    lines: list[ReservationLine] = []
    table_count: int
    editor_name: str | None = None
    created_at: datetime
    updated_at: datetime


class ReservationDeleted(BaseSchema):
    id: str
    deleted: bool = True
    released_tables: int
