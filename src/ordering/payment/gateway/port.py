"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement, so
that checkout can create payment intents and verify webhooks without knowing
which provider sits behind them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class PaymentIntentResult:
    """Result of a payment intent request."""

    success: bool
    client_secret: str | None = None
    intent_id: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_intent(self, amount: float, currency: str) -> PaymentIntentResult:
        """Ask the gateway to prepare a payment the client will complete."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
