import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from src.domain.exceptions import (
    CategoryInUseError,
    MissingFieldsError,
    NotFoundError,
    OwnershipError,
    ServiceInUseError,
    ServiceUnavailableError,
)
from src.infrastructure.db.models import (
    Booking,
    Service,
    ServiceCategory,
    User,
    Vendor,
    VendorStatus,
)
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.catalog_repository import (
    SORTABLE_SERVICE_FIELDS,
    CatalogRepository,
    ServiceListing,
)
from src.infrastructure.repositories.marketplace_repository import MarketplaceRepository

logger = logging.getLogger(__name__)

VENDOR_PREVIEW_SERVICES = 3
UNCATEGORIZED = "Other"
DEFAULT_PACKAGE_TYPE = "Standard"

_BASE_FEATURES: dict[str, list[str]] = {
    "Wedding Planning": [
        "Initial consultation and vision planning",
        "Venue selection and booking assistance",
        "Vendor recommendations and coordination",
        "Budget creation and management",
        "Timeline development and scheduling",
        "Guest list management",
        "RSVP tracking",
        "Day-of coordination and execution",
        "Post-wedding wrap-up services",
    ],
    "Floral Design": [
        "Initial consultation and design concept",
        "Custom bouquets and boutonnieres",
        "Ceremony floral arrangements",
        "Reception centerpieces and table décor",
        "Cake flowers and special accent pieces",
        "Delivery and setup on wedding day",
        "Post-event cleanup and removal",
    ],
    "Photography": [
        "Engagement photo session",
        "Full-day wedding coverage",
        "Second shooter for comprehensive coverage",
        "Professional editing and color correction",
        "Online gallery of high-resolution images",
        "Custom wedding album design",
        "Highlight video (3-5 minutes)",
        "Full ceremony and reception video",
    ],
    "Catering": [
        "Menu consultation and tasting",
        "Customized menu planning",
        "Dietary accommodation options",
        "Professional service staff",
        "Complete setup and cleanup",
        "Bar service and signature cocktails",
        "Custom cake design consultation",
        "Dessert table options",
    ],
    "Venue": [
        "Venue assessment and design planning",
        "Custom decoration packages",
        "Lighting design and installation",
        "Drapery and backdrop setups",
        "Table and chair decoration",
        "Entrance and aisle decoration",
        "Setup and teardown services",
        "Coordination with other vendors",
    ],
    "Music": [
        "Professional sound equipment",
        "Customized playlist creation",
        "Live performance options",
        "MC services for announcements",
        "Lighting effects coordination",
        "Early setup and sound check",
        "Backup equipment available",
        "Experienced professionals",
    ],
}
_FALLBACK_FEATURE_TYPE = "Wedding Planning"

# (upper price bound, how early to book)
_TIMELINE_BANDS: list[tuple[float, str]] = [
    (5000, "3-6 months before wedding date"),
    (10000, "6-9 months before wedding date"),
    (20000, "9-12 months before wedding date"),
]
_LONGEST_TIMELINE = "12-18 months before wedding date"


def default_service_features(service_name: str, category_name: str | None = None) -> list[str]:
    """First feature set whose type appears in the service or category name."""
    for service_type, features in _BASE_FEATURES.items():
        if service_type in service_name or (category_name and service_type in category_name):
            return list(features)
    return list(_BASE_FEATURES[_FALLBACK_FEATURE_TYPE])


def service_timeline(price: float) -> str:
    for upper_bound, timeline in _TIMELINE_BANDS:
        if price < upper_bound:
            return timeline
    return _LONGEST_TIMELINE


def pricing_label(price: float) -> str:
    return f"Starting at ETB {price:,.0f}"


def parse_features(raw: str | None) -> list[str] | None:
    """Decodes stored features; None when absent or unreadable."""
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Could not parse stored service features: %r", raw)
        return None
    return value if isinstance(value, list) else None


def encode_features(features: list[str] | None) -> str | None:
    return json.dumps(features) if features else None


@dataclass
class CategoryWithServices:
    category: ServiceCategory
    services: list
    service_count: int = 0


@dataclass
class ServicePage:
    listings: list[ServiceListing]
    total: int
    page: int
    limit: int


@dataclass
class VendorCard:
    vendor: Vendor
    owner: User
    service_count: int
    preview: list[Service]


@dataclass
class VendorServiceEntry:
    service: Service
    category: ServiceCategory | None
    features: list[str]
    timeline: str
    pricing: str


@dataclass
class VendorProfile:
    vendor: Vendor
    owner: User
    services_by_category: "OrderedDict[str, list[VendorServiceEntry]]" = field(default_factory=OrderedDict)


class CategoryService:
    """Admin management and public browsing of service categories."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = CatalogRepository(db)

    def list_categories(self, order_by_name: bool = False) -> list[tuple[ServiceCategory, int]]:
        return self.repository.list_categories_with_counts(order_by_name=order_by_name)

    def get_category(self, category_id: str) -> CategoryWithServices:
        category = self._require(category_id)
        services = self.repository.services_in_category(category_id)
        return CategoryWithServices(category=category, services=services, service_count=len(services))

    def get_public_category(self, category_id: str) -> CategoryWithServices:
        category = self._require(category_id, message="Category not found")
        listings = self.repository.approved_listings_in_category(category_id)
        return CategoryWithServices(category=category, services=listings, service_count=len(listings))

    def create_category(
        self,
        name: str | None,
        description: str | None = None,
        image: str | None = None,
    ) -> ServiceCategory:
        if not name:
            raise MissingFieldsError("Category name is required")
        category = self.repository.create_category(name=name, description=description, image=image)
        self.db.flush()
        logger.info("Service category %s created", category.id)
        return category

    def update_category(
        self,
        category_id: str,
        name: str | None = None,
        description: str | None = None,
        image: str | None = None,
    ) -> ServiceCategory:
        category = self._require(category_id)
        if name:
            category.name = name
        if description is not None:
            category.description = description
        if image is not None:
            category.image = image
        self.db.flush()
        return category

    def delete_category(self, category_id: str) -> None:
        category = self._require(category_id)
        if self.repository.count_services_in_category(category_id) > 0:
            raise CategoryInUseError(
                "Cannot delete category with associated services. "
                "Please reassign or delete the services first."
            )
        self.repository.delete_category(category)
        self.db.flush()
        logger.info("Service category %s deleted", category_id)

    def _require(self, category_id: str, message: str = "Service category not found") -> ServiceCategory:
        category = self.repository.get_category(category_id)
        if not category:
            raise NotFoundError(message)
        return category


class ServiceCatalog:
    """Public browsing of services offered by approved vendors."""

    def __init__(self, db: Session):
        self.repository = CatalogRepository(db)

    def browse(
        self,
        category_id: str | None = None,
        search: str | None = None,
        sort_by: str = "price",
        sort_order: str = "asc",
        page: int = 1,
        limit: int = 10,
    ) -> ServicePage:
        if sort_by not in SORTABLE_SERVICE_FIELDS:
            raise MissingFieldsError("Invalid sortBy field. Must be price, name, or createdAt")
        if sort_order not in ("asc", "desc"):
            raise MissingFieldsError("Invalid sortOrder. Must be asc or desc")
        if page < 1 or limit < 1:
            raise MissingFieldsError("Page and limit must be positive integers")

        listings, total = self.repository.browse_approved_listings(
            category_id=category_id,
            search=search,
            sort_by=sort_by,
            descending=sort_order == "desc",
            offset=(page - 1) * limit,
            limit=limit,
        )
        return ServicePage(listings=listings, total=total, page=page, limit=limit)

    def get_service(self, service_id: str) -> ServiceListing:
        listing = self.repository.get_listing(service_id)
        if not listing:
            raise NotFoundError("Service not found")
        if listing.vendor.status != VendorStatus.APPROVED:
            raise ServiceUnavailableError("This service is not available")
        return listing


class VendorDirectory:
    """Public vendor profiles."""

    def __init__(self, db: Session):
        self.repository = CatalogRepository(db)

    def vendors_in_category(self, category_name: str) -> tuple[ServiceCategory, list[VendorCard]]:
        category = self.repository.get_category_by_name(category_name)
        if not category:
            raise NotFoundError(f"Category '{category_name}' not found")

        cards = []
        for vendor, owner in self.repository.approved_vendors_in_category(category.id):
            cards.append(
                VendorCard(
                    vendor=vendor,
                    owner=owner,
                    service_count=self.repository.count_vendor_services(vendor.id),
                    preview=self.repository.vendor_services_in_category(
                        vendor.id, category.id, limit=VENDOR_PREVIEW_SERVICES
                    ),
                )
            )
        return category, cards

    def vendor_profile(self, vendor_id: str) -> VendorProfile:
        found = self.repository.get_approved_vendor(vendor_id)
        if not found:
            raise NotFoundError("Vendor not found or not approved")
        vendor, owner = found

        profile = VendorProfile(vendor=vendor, owner=owner)
        for service, category in self.repository.vendor_services_with_category(vendor.id):
            category_name = category.name if category else None
            features = parse_features(service.features)
            if features is None:
                features = default_service_features(service.name, category_name)
            profile.services_by_category.setdefault(category_name or UNCATEGORIZED, []).append(
                VendorServiceEntry(
                    service=service,
                    category=category,
                    features=features,
                    timeline=service_timeline(service.price),
                    pricing=pricing_label(service.price),
                )
            )
        return profile


class VendorServiceManager:
    """A vendor's own service listings."""

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.repository = CatalogRepository(db)
        self.bookings = BookingRepository(db)
        vendor = MarketplaceRepository(db).get_vendor_by_user_id(user_id)
        if not vendor:
            raise NotFoundError("Vendor profile not found")
        self.vendor = vendor

    def list_services(self) -> list[ServiceListing]:
        return self.repository.services_for_vendor(self.vendor.id)

    def bookings_by_service(self, listings: list[ServiceListing]) -> dict[str, list[Booking]]:
        return self.bookings.list_for_services([listing.service.id for listing in listings])

    def add_service(
        self,
        title: str | None,
        price: float | None,
        description: str | None = None,
        category_id: str | None = None,
        image: str | None = None,
        features: list[str] | None = None,
        package_type: str | None = None,
    ) -> ServiceListing:
        if not title or price is None:
            raise MissingFieldsError("Title and price are required fields")
        _ensure_positive_price(price)

        if category_id:
            self._require_category(category_id)
        else:
            category_id = self.vendor.category_id

        service = self.repository.add_service(
            Service(
                name=title,
                description=description or "",
                price=price,
                category_id=category_id,
                image=image,
                features=encode_features(features),
                package_type=package_type,
                vendor_id=self.vendor.id,
            )
        )
        self.db.flush()
        logger.info("Vendor %s added service %s", self.vendor.id, service.id)
        return self.repository.get_listing(service.id)

    def update_service(
        self,
        service_id: str,
        changes: dict,
    ) -> ServiceListing:
        service = self._require_owned(service_id, action="update")

        if changes.get("price") is not None:
            _ensure_positive_price(changes["price"])
        if changes.get("category_id"):
            self._require_category(changes["category_id"])
            service.category_id = changes["category_id"]

        if changes.get("title"):
            service.name = changes["title"]
        if "description" in changes and changes["description"] is not None:
            service.description = changes["description"]
        if changes.get("price") is not None:
            service.price = changes["price"]
        if "features" in changes:
            service.features = encode_features(changes["features"])
        if "package_type" in changes:
            service.package_type = changes["package_type"]
        if changes.get("image") is not None:
            service.image = changes["image"]

        self.db.flush()
        return self.repository.get_listing(service.id)

    def delete_service(self, service_id: str) -> None:
        service = self._require_owned(service_id, action="delete")
        if self.bookings.count_for_service(service_id) > 0:
            raise ServiceInUseError("Cannot delete a service that has bookings")
        self.repository.delete_service(service)
        self.db.flush()
        logger.info("Vendor %s deleted service %s", self.vendor.id, service_id)

    def _require_owned(self, service_id: str, action: str) -> Service:
        service = self.repository.get_service(service_id)
        if not service:
            raise NotFoundError("Service not found")
        if service.vendor_id != self.vendor.id:
            raise OwnershipError(f"Not authorized to {action} this service")
        return service

    def _require_category(self, category_id: str) -> ServiceCategory:
        category = self.repository.get_category(category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category


def _ensure_positive_price(price) -> None:
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price <= 0:
        raise MissingFieldsError("Price must be a positive number")
