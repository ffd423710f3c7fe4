from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------------
# Payments
# -----------------------------
# Fields are optional so missing values surface as 400 from the services.
class PaymentInitiateRequest(CamelModel):
    amount: float | None = None
    vendor_id: str | None = None
    booking_id: str | None = None


class PaymentInitiateResponse(CamelModel):
    checkout_url: str
    payment_id: str
    tx_ref: str = Field(alias="tx_ref")


class PaymentVerifyRequest(CamelModel):
    payment_id: str | None = None
    tx_ref: str | None = Field(default=None, alias="tx_ref")


class VendorNameSummary(CamelModel):
    business_name: str


class VerifiedServiceSummary(CamelModel):
    name: str
    vendor: VendorNameSummary


class VerifiedBookingSummary(CamelModel):
    id: str
    status: str
    event_date: datetime
    service: VerifiedServiceSummary


class PaymentVerifyResponse(CamelModel):
    message: str
    payment_id: str
    status: str
    amount: float
    created_at: datetime
    updated_at: datetime
    booking: VerifiedBookingSummary | None = None
    chapa_data: Any = None


class VendorRefSummary(CamelModel):
    id: str
    business_name: str


class PaymentServiceSummary(CamelModel):
    name: str
    price: float
    vendor: VendorRefSummary


class PaymentBookingSummary(CamelModel):
    id: str
    event_date: datetime
    location: str
    status: str
    service: PaymentServiceSummary


class PaymentItem(CamelModel):
    id: str
    amount: float
    status: str
    method: str
    transaction_id: str | None = None
    created_at: datetime
    updated_at: datetime
    booking: PaymentBookingSummary | None = None


class PaymentPagination(CamelModel):
    total: int
    page: int
    limit: int
    pages: int


class PaymentListResponse(CamelModel):
    payments: list[PaymentItem]
    pagination: PaymentPagination


# -----------------------------
# Catalog
# -----------------------------
class CategoryCreateRequest(CamelModel):
    name: str | None = None
    description: str | None = None
    image: str | None = None


class CategoryUpdateRequest(CamelModel):
    name: str | None = None
    description: str | None = None
    image: str | None = None


class CategoryResponse(CamelModel):
    id: str
    name: str
    description: str | None = None
    image: str | None = None
    service_count: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CategoryServiceItem(CamelModel):
    id: str
    name: str
    description: str
    price: float
    image: str | None = None
    created_at: datetime | None = None


class AdminCategoryDetail(CategoryResponse):
    services: list[CategoryServiceItem]


class ServiceVendorSummary(CamelModel):
    id: str
    user_id: str
    business_name: str
    rating: float | None = None
    owner_name: str
    description: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None


class ServiceListItem(CamelModel):
    id: str
    name: str
    description: str
    price: float
    image: str | None = None
    category_id: str | None = None
    category_name: str | None = None
    created_at: datetime | None = None
    vendor: ServiceVendorSummary


class PublicCategoryDetail(CamelModel):
    id: str
    name: str
    description: str | None = None
    image: str | None = None
    services: list[ServiceListItem]


class ServicePagination(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


class ServiceBrowseResponse(CamelModel):
    message: str
    services: list[ServiceListItem]
    pagination: ServicePagination


class ServiceDetailResponse(CamelModel):
    message: str
    service: ServiceListItem


class VendorPreviewService(CamelModel):
    id: str
    name: str
    price: float
    package_type: str
    features: list[str]


class VendorCardResponse(CamelModel):
    id: str
    business_name: str
    rating: float | None = None
    service_type: str
    owner_name: str
    email: str
    phone: str | None = None
    service_count: int
    services: list[VendorPreviewService]


class VendorsByCategoryResponse(CamelModel):
    success: bool = True
    category: CategoryResponse
    vendors: list[VendorCardResponse]


class VendorProfileService(CamelModel):
    id: str
    name: str
    description: str
    price: float
    image: str
    package_type: str
    features: list[str]
    timeline: str
    pricing: str


class VendorProfileResponse(CamelModel):
    id: str
    business_name: str
    description: str | None = None
    rating: float | None = None
    service_type: str
    owner_name: str
    contact_email: str
    contact_phone: str | None = None
    services_by_category: dict[str, list[VendorProfileService]]
    reviews: list[dict] = Field(default_factory=list)


class VendorProfileEnvelope(CamelModel):
    success: bool = True
    vendor: VendorProfileResponse


class VendorServiceCreateRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    price: float | None = None
    category_id: str | None = None
    image: str | None = None
    features: list[str] | None = None
    package_type: str | None = None


class VendorServiceUpdateRequest(VendorServiceCreateRequest):
    pass


class VendorServiceBooking(CamelModel):
    id: str
    client_id: str
    event_date: datetime
    location: str
    attendees: int | None = None
    special_requests: str | None = None
    status: str
    created_at: datetime | None = None


class VendorServiceItem(CamelModel):
    service_id: str
    title: str
    description: str
    price: float
    category_id: str | None = None
    category_name: str | None = None
    image: str | None = None
    features: list[str]
    package_type: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    bookings: list[VendorServiceBooking] = Field(default_factory=list)


# -----------------------------
# Bookings
# -----------------------------
class BookingCreateRequest(CamelModel):
    service_id: str | None = None
    event_date: datetime | None = None
    location: str | None = None
    attendees: int | None = None
    special_requests: str | None = None


class BookingResponse(CamelModel):
    id: str
    service_id: str
    event_date: datetime
    location: str
    attendees: int | None = None
    special_requests: str | None = None
    status: str
    created_at: datetime | None = None


# -----------------------------
# Outbox
# -----------------------------
class OutboxEventResponse(CamelModel):
    id: str
    aggregate_type: str
    aggregate_id: str
    event_type: str
    status: str
    attempts: int
    last_error: str | None = None
    created_at: str
    published_at: str | None = None
