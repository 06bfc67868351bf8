"""
Module 'payments' (feature-first): point d'entrée public.
Réunit normalisation des lignes, configuration Stripe, client Stripe, réconciliation et services.
"""

from .line_items import CheckoutRequest, LineItem, parse_checkout_request, to_line_items, sanitize_line_items
from .provider_config import ProviderConfig, resolve_provider_config, mask_key
from .stripe_client import require_stripe, create_session, get_session, parse_event, WebhookError
from .reconciliation import (
    ReconciliationOutcome,
    TransactionalReconciler,
    BestEffortReconciler,
    decrement_variant,
    get_reconciler,
)
from .service import create_checkout_session, get_checkout_session

__all__ = [
    # line items
    "CheckoutRequest",
    "LineItem",
    "parse_checkout_request",
    "to_line_items",
    "sanitize_line_items",
    # config
    "ProviderConfig",
    "resolve_provider_config",
    "mask_key",
    # stripe
    "require_stripe",
    "create_session",
    "get_session",
    "parse_event",
    "WebhookError",
    # reconciliation
    "ReconciliationOutcome",
    "TransactionalReconciler",
    "BestEffortReconciler",
    "decrement_variant",
    "get_reconciler",
    # services
    "create_checkout_session",
    "get_checkout_session",
]
