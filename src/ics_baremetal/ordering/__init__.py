"""Server ordering: SSH key resolution and order submission."""

from ics_baremetal.ordering.orchestrator import (
    OrderOrchestrator,
    OrderSubmissionError,
    SSHKeyNotFoundError,
    build_order_request,
)

__all__ = [
    "OrderOrchestrator",
    "OrderSubmissionError",
    "SSHKeyNotFoundError",
    "build_order_request",
]
