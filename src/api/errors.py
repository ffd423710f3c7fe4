from fastapi import HTTPException, status

from src.domain.exceptions import (
    CategoryInUseError,
    InvalidWebhookSignatureError,
    MalformedWebhookError,
    MarketplaceError,
    MissingFieldsError,
    NotFoundError,
    OwnershipError,
    PaymentInitiationError,
    PaymentVerificationError,
    PayoutAccountsNotConfiguredError,
    ProfileNotFoundError,
    ServiceInUseError,
    ServiceUnavailableError,
    VendorMismatchError,
)

_STATUS_BY_ERROR: list[tuple[type[MarketplaceError], int]] = [
    (MissingFieldsError, status.HTTP_400_BAD_REQUEST),
    (ProfileNotFoundError, status.HTTP_400_BAD_REQUEST),
    (VendorMismatchError, status.HTTP_400_BAD_REQUEST),
    (PayoutAccountsNotConfiguredError, status.HTTP_400_BAD_REQUEST),
    (CategoryInUseError, status.HTTP_400_BAD_REQUEST),
    (ServiceInUseError, status.HTTP_400_BAD_REQUEST),
    (MalformedWebhookError, status.HTTP_400_BAD_REQUEST),
    (InvalidWebhookSignatureError, status.HTTP_401_UNAUTHORIZED),
    (OwnershipError, status.HTTP_403_FORBIDDEN),
    (ServiceUnavailableError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PaymentInitiationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (PaymentVerificationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: MarketplaceError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def http_error(exc: MarketplaceError) -> HTTPException:
    return HTTPException(status_code=status_for(exc), detail=str(exc))
