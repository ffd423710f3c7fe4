import math

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_db, require_role
from src.api.errors import http_error
from src.api.schemas.schemas import (
    AdminCategoryDetail,
    CategoryCreateRequest,
    CategoryResponse,
    CategoryServiceItem,
    CategoryUpdateRequest,
    PublicCategoryDetail,
    ServiceBrowseResponse,
    ServiceDetailResponse,
    ServiceListItem,
    ServicePagination,
    ServiceVendorSummary,
    VendorCardResponse,
    VendorPreviewService,
    VendorProfileEnvelope,
    VendorProfileResponse,
    VendorProfileService,
    VendorsByCategoryResponse,
    VendorServiceBooking,
    VendorServiceCreateRequest,
    VendorServiceItem,
    VendorServiceUpdateRequest,
)
from src.application.catalog import (
    DEFAULT_PACKAGE_TYPE,
    CategoryService,
    ServiceCatalog,
    VendorDirectory,
    VendorServiceManager,
    parse_features,
)
from src.domain.exceptions import MarketplaceError
from src.infrastructure.db.models import Booking, ServiceCategory, User, UserRole
from src.infrastructure.repositories.catalog_repository import ServiceListing

admin_router = APIRouter(prefix="/api/admin/service-categories", tags=["admin-categories"])
public_router = APIRouter(prefix="/api/client", tags=["catalog"])
vendor_router = APIRouter(prefix="/api/vendor/services", tags=["vendor-services"])

admin_only = require_role(UserRole.ADMIN)
vendor_only = require_role(UserRole.VENDOR)


def _category(category: ServiceCategory, service_count: int | None = None) -> CategoryResponse:
    return CategoryResponse(
        id=category.id,
        name=category.name,
        description=category.description,
        image=category.image,
        service_count=service_count,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def _listing(listing: ServiceListing, with_contact: bool = False) -> ServiceListItem:
    service, vendor, owner = listing.service, listing.vendor, listing.owner
    return ServiceListItem(
        id=service.id,
        name=service.name,
        description=service.description,
        price=service.price,
        image=service.image,
        category_id=service.category_id,
        category_name=listing.category.name if listing.category else None,
        created_at=service.created_at,
        vendor=ServiceVendorSummary(
            id=vendor.id,
            user_id=vendor.user_id,
            business_name=vendor.business_name,
            rating=vendor.rating,
            owner_name=owner.full_name,
            description=vendor.description if with_contact else None,
            contact_email=owner.email if with_contact else None,
            contact_phone=owner.phone if with_contact else None,
        ),
    )


def _vendor_service(listing: ServiceListing, bookings: list[Booking] | None = None) -> VendorServiceItem:
    service = listing.service
    return VendorServiceItem(
        service_id=service.id,
        title=service.name,
        description=service.description,
        price=service.price,
        category_id=service.category_id,
        category_name=listing.category.name if listing.category else None,
        image=service.image,
        features=parse_features(service.features) or [],
        package_type=service.package_type or "",
        created_at=service.created_at,
        updated_at=service.updated_at,
        bookings=[
            VendorServiceBooking(
                id=booking.id,
                client_id=booking.client_id,
                event_date=booking.event_date,
                location=booking.location,
                attendees=booking.attendees,
                special_requests=booking.special_requests,
                status=booking.status.value,
                created_at=booking.created_at,
            )
            for booking in bookings or []
        ],
    )


# -----------------------------
# Admin: service categories
# -----------------------------
@admin_router.get("", response_model=list[CategoryResponse])
def admin_list_categories(
    _: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    categories = CategoryService(db).list_categories()
    return [_category(category, count) for category, count in categories]


@admin_router.get("/{category_id}", response_model=AdminCategoryDetail)
def admin_get_category(
    category_id: str,
    _: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        found = CategoryService(db).get_category(category_id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    return AdminCategoryDetail(
        **_category(found.category, found.service_count).model_dump(),
        services=[
            CategoryServiceItem(
                id=service.id,
                name=service.name,
                description=service.description,
                price=service.price,
                image=service.image,
                created_at=service.created_at,
            )
            for service in found.services
        ],
    )


@admin_router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def admin_create_category(
    request: CategoryCreateRequest,
    _: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        category = CategoryService(db).create_category(
            name=request.name,
            description=request.description,
            image=request.image,
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return _category(category)


@admin_router.put("/{category_id}", response_model=CategoryResponse)
def admin_update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    _: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        category = CategoryService(db).update_category(
            category_id,
            name=request.name,
            description=request.description,
            image=request.image,
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return _category(category)


@admin_router.delete("/{category_id}")
def admin_delete_category(
    category_id: str,
    _: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    try:
        CategoryService(db).delete_category(category_id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return {"success": True, "message": "Service category deleted successfully"}


# -----------------------------
# Public: categories, services, vendors
# -----------------------------
@public_router.get("/service-categories", response_model=list[CategoryResponse])
def list_categories(db: Session = Depends(get_db)):
    categories = CategoryService(db).list_categories(order_by_name=True)
    return [_category(category, count) for category, count in categories]


@public_router.get("/service-categories/{category_id}", response_model=PublicCategoryDetail)
def get_category(category_id: str, db: Session = Depends(get_db)):
    try:
        found = CategoryService(db).get_public_category(category_id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    return PublicCategoryDetail(
        id=found.category.id,
        name=found.category.name,
        description=found.category.description,
        image=found.category.image,
        services=[_listing(listing) for listing in found.services],
    )


@public_router.get("/services", response_model=ServiceBrowseResponse)
def browse_services(
    category_id: str | None = Query(default=None, alias="categoryId"),
    search: str | None = None,
    sort_by: str = Query(default="price", alias="sortBy"),
    sort_order: str = Query(default="asc", alias="sortOrder"),
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
):
    try:
        result = ServiceCatalog(db).browse(
            category_id=category_id,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    return ServiceBrowseResponse(
        message="Services retrieved successfully",
        services=[_listing(listing) for listing in result.listings],
        pagination=ServicePagination(
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=math.ceil(result.total / result.limit),
        ),
    )


@public_router.get("/services/{service_id}", response_model=ServiceDetailResponse)
def get_service(service_id: str, db: Session = Depends(get_db)):
    try:
        listing = ServiceCatalog(db).get_service(service_id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return ServiceDetailResponse(
        message="Service retrieved successfully",
        service=_listing(listing, with_contact=True),
    )


@public_router.get("/vendors/category/{category_name}", response_model=VendorsByCategoryResponse)
def vendors_by_category(category_name: str, db: Session = Depends(get_db)):
    try:
        category, cards = VendorDirectory(db).vendors_in_category(category_name)
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    return VendorsByCategoryResponse(
        category=_category(category),
        vendors=[
            VendorCardResponse(
                id=card.vendor.id,
                business_name=card.vendor.business_name,
                rating=card.vendor.rating,
                service_type=card.vendor.service_type,
                owner_name=card.owner.full_name,
                email=card.owner.email,
                phone=card.owner.phone,
                service_count=card.service_count,
                services=[
                    VendorPreviewService(
                        id=service.id,
                        name=service.name,
                        price=service.price,
                        package_type=service.package_type or DEFAULT_PACKAGE_TYPE,
                        features=parse_features(service.features) or [],
                    )
                    for service in card.preview
                ],
            )
            for card in cards
        ],
    )


@public_router.get("/vendors/{vendor_id}", response_model=VendorProfileEnvelope)
def get_vendor(vendor_id: str, db: Session = Depends(get_db)):
    try:
        profile = VendorDirectory(db).vendor_profile(vendor_id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc

    services_by_category = {}
    for category_name, entries in profile.services_by_category.items():
        services_by_category[category_name] = [
            VendorProfileService(
                id=entry.service.id,
                name=entry.service.name,
                description=entry.service.description,
                price=entry.service.price,
                image=entry.service.image or _placeholder_image(entry.category),
                package_type=entry.service.package_type or DEFAULT_PACKAGE_TYPE,
                features=entry.features,
                timeline=entry.timeline,
                pricing=entry.pricing,
            )
            for entry in entries
        ]

    return VendorProfileEnvelope(
        vendor=VendorProfileResponse(
            id=profile.vendor.id,
            business_name=profile.vendor.business_name,
            description=profile.vendor.description,
            rating=profile.vendor.rating,
            service_type=profile.vendor.service_type,
            owner_name=profile.owner.full_name,
            contact_email=profile.owner.email,
            contact_phone=profile.owner.phone,
            services_by_category=services_by_category,
        )
    )


def _placeholder_image(category: ServiceCategory | None) -> str:
    slug = category.name.lower() if category else "default"
    return f"/image/service-{slug}.jpg"


# -----------------------------
# Vendor: own services
# -----------------------------
@vendor_router.get("", response_model=list[VendorServiceItem])
def list_vendor_services(
    user: User = Depends(vendor_only),
    db: Session = Depends(get_db),
):
    try:
        manager = VendorServiceManager(db, user.id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    listings = manager.list_services()
    bookings = manager.bookings_by_service(listings)
    return [_vendor_service(listing, bookings[listing.service.id]) for listing in listings]


@vendor_router.post("", response_model=VendorServiceItem, status_code=status.HTTP_201_CREATED)
def add_vendor_service(
    request: VendorServiceCreateRequest,
    user: User = Depends(vendor_only),
    db: Session = Depends(get_db),
):
    try:
        listing = VendorServiceManager(db, user.id).add_service(
            title=request.title,
            price=request.price,
            description=request.description,
            category_id=request.category_id,
            image=request.image,
            features=request.features,
            package_type=request.package_type,
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return _vendor_service(listing)


@vendor_router.put("/{service_id}", response_model=VendorServiceItem)
def update_vendor_service(
    service_id: str,
    request: VendorServiceUpdateRequest,
    user: User = Depends(vendor_only),
    db: Session = Depends(get_db),
):
    try:
        listing = VendorServiceManager(db, user.id).update_service(
            service_id,
            changes=request.model_dump(exclude_unset=True),
        )
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return _vendor_service(listing)


@vendor_router.delete("/{service_id}")
def delete_vendor_service(
    service_id: str,
    user: User = Depends(vendor_only),
    db: Session = Depends(get_db),
):
    try:
        VendorServiceManager(db, user.id).delete_service(service_id)
    except MarketplaceError as exc:
        raise http_error(exc) from exc
    return {"success": True, "message": "Service listing deleted successfully"}
