"""Configurable fake payment gateway for development and testing.

Simulates a gateway without any external calls. It can be told to succeed or
fail at runtime and records every call it receives, which lets tests assert
on exactly what checkout sent.
"""

from uuid import uuid4

from ordering.payment.gateway.port import PaymentGateway, PaymentIntentResult

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Gateway unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment_intent(self, amount: float, currency: str) -> PaymentIntentResult:
        self.calls.append({"method": "create_payment_intent", "amount": amount, "currency": currency})

        if self.should_succeed:
            intent_id = f"fake_pi_{uuid4().hex[:12]}"
            return PaymentIntentResult(
                success=True,
                intent_id=intent_id,
                client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}",
            )
        return PaymentIntentResult(success=False, failure_reason=self.failure_reason)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE
