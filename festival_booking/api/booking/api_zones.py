from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from festival_booking.utils.database import get_db, db_session_context
from festival_booking.repositories.zone_repository import zone_repository
from festival_booking.dto import zone as zone_schemas
import logging

router = APIRouter(prefix="/zones", tags=["zones"])

logger = logging.getLogger(__name__)

# Zone endpoints
@router.post("/", response_model=zone_schemas.Zone, status_code=201)
async def create_zone(zone: zone_schemas.ZoneCreate, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await zone_repository.create(zone)

@router.get("/", response_model=list[zone_schemas.Zone])
async def list_zones(festival_id: str | None = None, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await zone_repository.list_by_festival(festival_id)

@router.get("/{zone_id}", response_model=zone_schemas.Zone)
async def read_zone(zone_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await zone_repository.require(zone_id)

@router.put("/{zone_id}", response_model=zone_schemas.Zone)
async def update_zone(zone_id: str, zone: zone_schemas.ZoneUpdate, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await zone_repository.update(zone_id, zone)

@router.delete("/{zone_id}")
async def delete_zone(zone_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    await zone_repository.delete(zone_id)
    return {"id": zone_id, "deleted": True}
