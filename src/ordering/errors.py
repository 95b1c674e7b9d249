"""Application error taxonomy.

Aggregates keep raising ``protean.exceptions.ValidationError`` for rule
violations on their own fields. The errors here describe failures of the
surrounding operations: missing resources, callers without access, stock
shortfalls and payment processor trouble. Each carries the HTTP status the
API answers with and a message that is safe to show to the caller.
"""


class StorefrontError(Exception):
    status_code = 500
    retryable = False

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(StorefrontError):
    status_code = 404


class ForbiddenError(StorefrontError):
    """Caller is not identified, does not own the resource, or lacks the role."""

    status_code = 401


class EmptyCartError(StorefrontError):
    status_code = 400

    def __init__(self, message: str = "No items in cart") -> None:
        super().__init__(message)


class InsufficientStockError(StorefrontError):
    status_code = 400

    def __init__(self, product_name: str) -> None:
        super().__init__(f"Not enough stock for {product_name}")
        self.product_name = product_name


class PaymentVerificationError(StorefrontError):
    """The processor rejected the payment or the webhook signature is invalid."""

    status_code = 400


class UpstreamTimeoutError(StorefrontError):
    """The payment processor did not answer in time. Safe to retry."""

    status_code = 504
    retryable = True
