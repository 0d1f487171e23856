class OrderError(Exception):
    """Base for errors that are reported to API clients.

    ``message`` is safe to show to the caller; internal detail belongs in the
    logs, never here.
    """

    status_code = 400
    default_message = "Order request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OrderError):
    default_message = "Invalid order request"


class PaymentNotConfirmed(OrderError):
    status_code = 402
    default_message = "Payment has not been confirmed by the gateway"


class RateUnavailable(OrderError):
    status_code = 503
    default_message = "Currency conversion is unavailable"


class NotFound(OrderError):
    status_code = 404
    default_message = "Not found"


class SupplierDispatchFailed(OrderError):
    status_code = 502
    default_message = "Supplier dispatch failed"


class NotificationFailed(OrderError):
    status_code = 500
    default_message = "Customer notification failed"
