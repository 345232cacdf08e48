class AppException(Exception):
    """Base application exception."""

    pass


class NotFoundError(AppException):
    """Resource not found exception."""

    pass


class ValidationError(AppException):
    """Validation error exception."""

    pass


class BillingConfigurationError(AppException):
    """Payment processor or price is not configured."""

    pass


class PaymentProviderError(AppException):
    """The payment processor rejected a request or could not be reached."""

    pass


class LedgerContentionError(AppException):
    """A ledger document kept changing under a compare-and-swap write."""

    pass


class CheckoutIncompleteError(AppException):
    """Checkout session exists but has not been paid yet."""

    pass
