

class MarketplaceError(Exception):
    """
    Base exception for all domain-level errors
    inside the wedding marketplace backend.
    """


class MissingFieldsError(MarketplaceError):
    """Raised when required request fields are absent or invalid."""


class NotFoundError(MarketplaceError):
    """Raised when a referenced record does not exist."""


class ProfileNotFoundError(MarketplaceError):
    """Raised when the caller has no client or vendor profile."""


class OwnershipError(MarketplaceError):
    """Raised when the caller does not own the resource."""


class VendorMismatchError(MarketplaceError):
    """Raised when a booking's service belongs to another vendor."""


class PayoutAccountsNotConfiguredError(MarketplaceError):
    """Raised when the vendor or admin payout subaccount is missing."""


class ServiceUnavailableError(MarketplaceError):
    """Raised when a service belongs to a vendor that is not approved."""


class CategoryInUseError(MarketplaceError):
    """Raised when deleting a category that still has services."""


class ServiceInUseError(MarketplaceError):
    """Raised when deleting a service that still has bookings."""


class GatewayError(MarketplaceError):
    """Raised when the payment gateway call fails or returns garbage."""


class PaymentInitiationError(MarketplaceError):
    """Raised when the hosted checkout session could not be created."""


class InvalidWebhookSignatureError(MarketplaceError):
    """Raised when a webhook signature is missing or does not match."""


class MalformedWebhookError(MarketplaceError):
    """Raised when a signed webhook payload cannot be used."""


class PaymentVerificationError(MarketplaceError):
    """Raised when the gateway could not verify a transaction."""
