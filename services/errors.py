"""Error hierarchy for the ledger and billing engine.

Each error carries the HTTP status the API renders it with; ``main.py``
registers a single handler for :class:`BillingEngineError`.
"""
from __future__ import annotations
from typing import Optional


class BillingEngineError(Exception):
    """Base error for ledger, billing and charge operations."""

    status_code = 500
    retryable = False

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "field": self.field,
            "kind": self.kind,
            "retryable": self.retryable,
        }


class ValidationError(BillingEngineError):
    """Malformed or out-of-range input. Nothing was written."""

    status_code = 422


class NotFoundError(BillingEngineError):
    """Unknown customer, order or bill key. Nothing was written."""

    status_code = 404


class UpstreamUnavailable(BillingEngineError):
    """Persistence or pricing collaborator could not answer. Safe to retry."""

    status_code = 503
    retryable = True


class PricingUnavailable(UpstreamUnavailable):
    """No current price sheet, or no price for the customer's type."""
