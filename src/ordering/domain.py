"""Ordering bounded context — Checkout, Orders and Shipments.

Turns a customer's cart into an immutable, priced order while guarding stock
against overselling, and tracks the order's shipment through a strictly
linear status lifecycle.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
