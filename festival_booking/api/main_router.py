from fastapi import APIRouter
from festival_booking.api.booking import api_festivals, api_zones, api_reservations, api_invoices

router = APIRouter()

router.include_router(api_festivals.router)
router.include_router(api_zones.router)
router.include_router(api_reservations.router)
router.include_router(api_invoices.router)
