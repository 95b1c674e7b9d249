"""Payment gateway port (abstract interface).

The contract every processor adapter implements: payment intents created
for an order, retrieved for client-side confirmation, and signed webhook
events verified against the untouched request body. Swapping FakeGateway
(dev/test) for StripeGateway (production) changes nothing in the callers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PaymentIntent:
    """The processor's view of one payment attempt for an order."""

    id: str
    status: str
    amount: int  # minor units (cents)
    currency: str
    created: int | None = None
    client_secret: str | None = None
    metadata: dict = field(default_factory=dict)
    receipt_email: str | None = None

    @property
    def order_id(self) -> str | None:
        return self.metadata.get("order_id")

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


@dataclass(frozen=True)
class WebhookEvent:
    """A verified processor notification."""

    id: str
    type: str
    data: dict = field(default_factory=dict)  # the event's data.object


class GatewayError(Exception):
    """The processor definitively rejected the request."""


class GatewayTimeoutError(GatewayError):
    """The processor could not be reached in time."""


class SignatureVerificationError(GatewayError):
    """A webhook payload is not authentically from the processor."""


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict,
        description: str | None = None,
    ) -> PaymentIntent:
        """Open a payment intent for ``amount`` minor units."""
        ...

    @abstractmethod
    def retrieve_payment_intent(self, intent_id: str) -> PaymentIntent:
        """Fetch the current state of an intent."""
        ...

    @abstractmethod
    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """Verify ``signature`` over the raw ``payload`` and parse the event.

        Raises SignatureVerificationError when the payload cannot be trusted.
        """
        ...
