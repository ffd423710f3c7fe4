from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from src import config
from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import (
    Base,
    Booking,
    Client,
    PayoutSubaccount,
    Service,
    ServiceCategory,
    SubaccountType,
    User,
    UserRole,
    Vendor,
    VendorStatus,
)
from src.infrastructure.db.session import SessionLocal, engine
from src.infrastructure.security.tokens import create_access_token

CATEGORY_DEFS = [
    {"name": "Photography", "description": "Photo and video coverage"},
    {"name": "Catering", "description": "Food, drinks and cake"},
    {"name": "Venue", "description": "Halls, gardens and decoration"},
    {"name": "Music", "description": "DJs, bands and sound"},
]


def _upsert_user(db, email: str, first_name: str, last_name: str, role: UserRole, phone: str | None = None) -> User:
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user:
        return user
    user = User(email=email, first_name=first_name, last_name=last_name, phone=phone, role=role)
    db.add(user)
    db.flush()
    return user


def seed_categories(db) -> dict[str, ServiceCategory]:
    categories = {}
    for item in CATEGORY_DEFS:
        category = db.execute(
            select(ServiceCategory).where(ServiceCategory.name == item["name"])
        ).scalar_one_or_none()
        if not category:
            category = ServiceCategory(name=item["name"], description=item["description"])
            db.add(category)
            db.flush()
        categories[item["name"]] = category
    return categories


def seed_marketplace(db, categories: dict[str, ServiceCategory]) -> dict[str, User]:
    admin = _upsert_user(db, "admin@weddingplanner.com", "Platform", "Admin", UserRole.ADMIN)
    if not db.execute(
        select(PayoutSubaccount).where(PayoutSubaccount.type == SubaccountType.ADMIN)
    ).first():
        db.add(
            PayoutSubaccount(
                account_id=config.chapa_admin_subaccount_id() or "demo-admin-subaccount",
                type=SubaccountType.ADMIN,
            )
        )

    vendor_user = _upsert_user(
        db, "lens@weddingplanner.com", "Selam", "Tesfaye", UserRole.VENDOR, phone="+251911000001"
    )
    vendor = db.execute(select(Vendor).where(Vendor.user_id == vendor_user.id)).scalar_one_or_none()
    if not vendor:
        vendor = Vendor(
            user_id=vendor_user.id,
            business_name="Golden Lens Studio",
            description="Wedding photography in Addis Ababa",
            service_type="Photography",
            status=VendorStatus.APPROVED,
            rating=4.8,
            chapa_subaccount_id="demo-vendor-subaccount",
            category_id=categories["Photography"].id,
        )
        db.add(vendor)
        db.flush()
        db.add(
            PayoutSubaccount(
                account_id=vendor.chapa_subaccount_id,
                type=SubaccountType.VENDOR,
                vendor_id=vendor.id,
            )
        )

    service = db.execute(
        select(Service).where(Service.vendor_id == vendor.id).where(Service.name == "Full Day Photography")
    ).scalar_one_or_none()
    if not service:
        service = Service(
            name="Full Day Photography",
            description="Ceremony and reception coverage with an online gallery",
            price=15000,
            package_type="Premium",
            category_id=categories["Photography"].id,
            vendor_id=vendor.id,
        )
        db.add(service)
        db.flush()

    client_user = _upsert_user(
        db, "client@weddingplanner.com", "Hanna", "Girma", UserRole.CLIENT, phone="+251911000002"
    )
    client = db.execute(select(Client).where(Client.user_id == client_user.id)).scalar_one_or_none()
    if not client:
        client = Client(user_id=client_user.id)
        db.add(client)
        db.flush()

    if not db.execute(select(Booking).where(Booking.client_id == client.id)).first():
        db.add(
            Booking(
                client_id=client.id,
                service_id=service.id,
                event_date=datetime.now(timezone.utc) + timedelta(days=120),
                location="Addis Ababa",
                attendees=150,
                status=BookingStatus.PENDING,
            )
        )

    return {"admin": admin, "vendor": vendor_user, "client": client_user}


def main() -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        categories = seed_categories(db)
        users = seed_marketplace(db, categories)
        db.commit()
        print("Seed complete: categories, Golden Lens Studio, a client and a pending booking added.")
        if config.jwt_secret():
            for label, user in users.items():
                print(f"{label} token: {create_access_token(user.id, user.role.value)}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
