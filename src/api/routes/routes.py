from fastapi import APIRouter

from src.api.routes import bookings, catalog, outbox, payments

router = APIRouter()


@router.get("/health")
def health():
    return {"message": "Wedding marketplace backend is running"}


router.include_router(payments.router)
router.include_router(bookings.router)
router.include_router(catalog.admin_router)
router.include_router(catalog.public_router)
router.include_router(catalog.vendor_router)
router.include_router(outbox.router)
