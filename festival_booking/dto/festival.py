from datetime import date, datetime

from pydantic import model_validator

from festival_booking.dto import BaseSchema
from festival_booking.dto.zone import Zone as ZoneSchema


class FestivalCreate(BaseSchema):
    name: str
    location: str | None = None
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class Festival(BaseSchema):
    id: str
    name: str
    location: str | None = None
    start_date: date
    end_date: date
    created_at: datetime
    updated_at: datetime


class FestivalDetail(Festival):
    zones: list[ZoneSchema] = []
