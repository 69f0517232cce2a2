from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from festival_booking.utils.database import get_db, db_session_context
from festival_booking.repositories.festival_repository import festival_repository
from festival_booking.dto import festival as festival_schemas
import logging

router = APIRouter(prefix="/festivals", tags=["festivals"])

logger = logging.getLogger(__name__)

@router.post("/", response_model=festival_schemas.Festival, status_code=201)
async def create_festival(festival: festival_schemas.FestivalCreate, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await festival_repository.create(festival)

@router.get("/{festival_id}", response_model=festival_schemas.FestivalDetail)
async def read_festival(festival_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await festival_repository.require(festival_id)
