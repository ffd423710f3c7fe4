# src/infrastructure/repositories/catalog_repository.py

from dataclasses import dataclass

from sqlalchemy.orm import Session
from sqlalchemy import Select, select, func

from src.infrastructure.db.models import (
    Service,
    ServiceCategory,
    User,
    Vendor,
    VendorStatus,
)


@dataclass
class ServiceListing:
    service: Service
    vendor: Vendor
    owner: User
    category: ServiceCategory | None


SORTABLE_SERVICE_FIELDS = {
    "price": Service.price,
    "name": Service.name,
    "createdAt": Service.created_at,
}


def _listing_query() -> Select:
    return (
        select(Service, Vendor, User, ServiceCategory)
        .join(Vendor, Service.vendor_id == Vendor.id)
        .join(User, Vendor.user_id == User.id)
        .outerjoin(ServiceCategory, Service.category_id == ServiceCategory.id)
    )


def _to_listing(row) -> ServiceListing:
    service, vendor, owner, category = row
    return ServiceListing(service=service, vendor=vendor, owner=owner, category=category)


class CatalogRepository:

    def __init__(self, db: Session):
        self.db = db

    # -----------------------------
    # Categories
    # -----------------------------
    def list_categories_with_counts(
        self,
        order_by_name: bool = False,
    ) -> list[tuple[ServiceCategory, int]]:
        service_count = (
            select(func.count(Service.id))
            .where(Service.category_id == ServiceCategory.id)
            .correlate(ServiceCategory)
            .scalar_subquery()
        )
        order = ServiceCategory.name.asc() if order_by_name else ServiceCategory.created_at.desc()
        stmt = select(ServiceCategory, service_count).order_by(order)
        return [(category, count) for category, count in self.db.execute(stmt).all()]

    def get_category(self, category_id: str) -> ServiceCategory | None:
        return self.db.get(ServiceCategory, category_id)

    def get_category_by_name(self, name: str) -> ServiceCategory | None:
        stmt = select(ServiceCategory).where(ServiceCategory.name == name).limit(1)
        return self.db.execute(stmt).scalar_one_or_none()

    def create_category(
        self,
        name: str,
        description: str | None,
        image: str | None,
    ) -> ServiceCategory:
        category = ServiceCategory(name=name, description=description or "", image=image)
        self.db.add(category)
        return category

    def delete_category(self, category: ServiceCategory) -> None:
        self.db.delete(category)

    def count_services_in_category(self, category_id: str) -> int:
        stmt = select(func.count(Service.id)).where(Service.category_id == category_id)
        return self.db.execute(stmt).scalar_one()

    def services_in_category(self, category_id: str) -> list[Service]:
        stmt = (
            select(Service)
            .where(Service.category_id == category_id)
            .order_by(Service.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def approved_listings_in_category(self, category_id: str) -> list[ServiceListing]:
        stmt = (
            _listing_query()
            .where(Service.category_id == category_id)
            .where(Vendor.status == VendorStatus.APPROVED)
            .order_by(Service.created_at.desc())
        )
        return [_to_listing(row) for row in self.db.execute(stmt).all()]

    # -----------------------------
    # Services
    # -----------------------------
    def browse_approved_listings(
        self,
        category_id: str | None,
        search: str | None,
        sort_by: str,
        descending: bool,
        offset: int,
        limit: int,
    ) -> tuple[list[ServiceListing], int]:
        conditions = [Vendor.status == VendorStatus.APPROVED]
        if category_id:
            conditions.append(Service.category_id == category_id)
        if search:
            conditions.append(func.lower(Service.name).contains(search.lower()))

        column = SORTABLE_SERVICE_FIELDS[sort_by]
        stmt = (
            _listing_query()
            .where(*conditions)
            .order_by(column.desc() if descending else column.asc())
            .offset(offset)
            .limit(limit)
        )
        listings = [_to_listing(row) for row in self.db.execute(stmt).all()]

        count_stmt = (
            select(func.count(Service.id))
            .join(Vendor, Service.vendor_id == Vendor.id)
            .where(*conditions)
        )
        total = self.db.execute(count_stmt).scalar_one()
        return listings, total

    def get_listing(self, service_id: str) -> ServiceListing | None:
        row = self.db.execute(_listing_query().where(Service.id == service_id)).first()
        return _to_listing(row) if row else None

    def get_service(self, service_id: str) -> Service | None:
        return self.db.get(Service, service_id)

    def add_service(self, service: Service) -> Service:
        self.db.add(service)
        return service

    def delete_service(self, service: Service) -> None:
        self.db.delete(service)

    def services_for_vendor(self, vendor_id: str) -> list[ServiceListing]:
        stmt = (
            _listing_query()
            .where(Service.vendor_id == vendor_id)
            .order_by(Service.created_at.desc())
        )
        return [_to_listing(row) for row in self.db.execute(stmt).all()]

    # -----------------------------
    # Vendors
    # -----------------------------
    def approved_vendors_in_category(self, category_id: str) -> list[tuple[Vendor, User]]:
        has_service = (
            select(Service.id)
            .where(Service.vendor_id == Vendor.id)
            .where(Service.category_id == category_id)
            .exists()
        )
        stmt = (
            select(Vendor, User)
            .join(User, Vendor.user_id == User.id)
            .where(Vendor.status == VendorStatus.APPROVED)
            .where(has_service)
            .order_by(Vendor.rating.desc())
        )
        return [(vendor, user) for vendor, user in self.db.execute(stmt).all()]

    def vendor_services_in_category(
        self,
        vendor_id: str,
        category_id: str,
        limit: int,
    ) -> list[Service]:
        stmt = (
            select(Service)
            .where(Service.vendor_id == vendor_id)
            .where(Service.category_id == category_id)
            .order_by(Service.created_at)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def count_vendor_services(self, vendor_id: str) -> int:
        stmt = select(func.count(Service.id)).where(Service.vendor_id == vendor_id)
        return self.db.execute(stmt).scalar_one()

    def get_approved_vendor(self, vendor_id: str) -> tuple[Vendor, User] | None:
        stmt = (
            select(Vendor, User)
            .join(User, Vendor.user_id == User.id)
            .where(Vendor.id == vendor_id)
            .where(Vendor.status == VendorStatus.APPROVED)
        )
        row = self.db.execute(stmt).first()
        return (row[0], row[1]) if row else None

    def vendor_services_with_category(
        self,
        vendor_id: str,
    ) -> list[tuple[Service, ServiceCategory | None]]:
        stmt = (
            select(Service, ServiceCategory)
            .outerjoin(ServiceCategory, Service.category_id == ServiceCategory.id)
            .where(Service.vendor_id == vendor_id)
            .order_by(Service.price.asc())
        )
        return [(service, category) for service, category in self.db.execute(stmt).all()]
