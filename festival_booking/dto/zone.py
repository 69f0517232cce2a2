from datetime import datetime
from decimal import Decimal

from pydantic import Field

from festival_booking.dto import BaseSchema

class ZoneCreate(BaseSchema):
    festival_id: str
    name: str
    total_tables: int = Field(ge=0)
    price_per_table: Decimal = Field(ge=0)
    # Defaults to a quarter of the table price
    price_per_area: Decimal | None = Field(default=None, ge=0)

class ZoneUpdate(BaseSchema):
    name: str | None = None
    total_tables: int | None = Field(default=None, ge=0)
    price_per_table: Decimal | None = Field(default=None, ge=0)
    price_per_area: Decimal | None = Field(default=None, ge=0)

class Zone(BaseSchema):
    id: str
    festival_id: str
    name: str
    total_tables: int
    available_tables: int
    price_per_table: float
    price_per_area: float
    created_at: datetime
    updated_at: datetime
