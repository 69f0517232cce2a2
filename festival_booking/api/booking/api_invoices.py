from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from festival_booking.utils.database import get_db, db_session_context
from festival_booking.repositories.invoice_repository import invoice_repository
from festival_booking.dto import invoice as invoice_schemas

router = APIRouter(prefix="/invoices", tags=["invoices"])

@router.post("/reservation/{reservation_id}", response_model=invoice_schemas.Invoice, status_code=201)
async def issue_invoice(reservation_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await invoice_repository.issue(reservation_id)

@router.get("/reservation/{reservation_id}", response_model=invoice_schemas.Invoice)
async def read_reservation_invoice(reservation_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await invoice_repository.get_by_reservation(reservation_id)

@router.get("/{invoice_id}", response_model=invoice_schemas.Invoice)
async def read_invoice(invoice_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await invoice_repository.require(invoice_id)

@router.put("/{invoice_id}/paid", response_model=invoice_schemas.Invoice)
async def pay_invoice(invoice_id: str, db: Session = Depends(get_db)):
    db_session_context.set(db)
    return await invoice_repository.mark_paid(invoice_id)
