from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from festival_booking.utils.database import get_db, db_session_context
from festival_booking.repositories.reservation_repository import reservation_repository
from festival_booking.dto import reservation as reservation_schemas
import logging

router = APIRouter(prefix="/reservations", tags=["reservations"])

logger = logging.getLogger(__name__)

@router.post("/", response_model=reservation_schemas.Reservation, status_code=201)
async def create_reservation(reservation: reservation_schemas.ReservationCreate, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await reservation_repository.create(reservation)

@router.get("/", response_model=list[reservation_schemas.Reservation])
async def list_reservations(festival_id: str | None = None, editor_id: str | None = None,
                            db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await reservation_repository.search(festival_id=festival_id, editor_id=editor_id)

@router.get("/festival/{festival_id}", response_model=list[reservation_schemas.Reservation])
async def list_festival_reservations(festival_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await reservation_repository.search(festival_id=festival_id)

@router.get("/{reservation_id}", response_model=reservation_schemas.Reservation)
async def read_reservation(reservation_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await reservation_repository.require(reservation_id)

@router.put("/{reservation_id}", response_model=reservation_schemas.Reservation)
async def update_reservation(reservation_id: str, reservation: reservation_schemas.ReservationUpdate,
                             db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await reservation_repository.update_fields(reservation_id, reservation)

@router.put("/{reservation_id}/status", response_model=reservation_schemas.Reservation)
async def update_reservation_status(reservation_id: str, body: reservation_schemas.ReservationStatusUpdate,
                                    db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await reservation_repository.update_status(reservation_id, body.workflow_status)

@router.put("/{reservation_id}/lines", response_model=reservation_schemas.Reservation)
async def replace_reservation_lines(reservation_id: str, body: reservation_schemas.ReservationLinesReplace,
                                    db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await reservation_repository.replace_lines(reservation_id, body.lines)

@router.delete("/{reservation_id}", response_model=reservation_schemas.ReservationDeleted)
async def delete_reservation(reservation_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await reservation_repository.delete(reservation_id)
