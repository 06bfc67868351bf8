"""
Cas d'usage 'orders': listing admin et création manuelle d'une commande.
"""
import logging
from typing import Any, Dict

from fastapi import HTTPException

from storefront.orders import repository as orders_repository

logger = logging.getLogger(__name__)

def _numeric_total(value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise HTTPException(status_code=400, detail="total is required and must be numeric")
    try:
        total = float(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="total is required and must be numeric")
    if total != total:
        raise HTTPException(status_code=400, detail="total is required and must be numeric")
    return total

def order_payload(body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convertit le body camelCase en ligne 'orders'.
    - total numérique obligatoire, items liste non vide (400 sinon)
    - une commande naît toujours 'pending': seul le webhook la passe à 'paid'
    """
    total = _numeric_total(body.get("total"))
    items = body.get("items")
    if not isinstance(items, list) or not items:
        raise HTTPException(status_code=400, detail="items must be a non-empty array")
    status = body.get("status") or "pending"
    if status != "pending":
        raise HTTPException(status_code=400, detail="status must be pending")
    return {
        "session_id": body.get("sessionId"),
        "stripe_payment_intent_id": body.get("stripePaymentIntentId"),
        "stripe_session_id": body.get("stripeSessionId"),
        "total": total,
        "status": status,
        "customer_email": body.get("customerEmail"),
        "shipping_address": body.get("shippingAddress"),
        "billing_address": body.get("billingAddress"),
        "items": items,
    }

# module storefront.orders.service
def list_orders() -> Dict[str, Any]:
    orders = orders_repository.list_orders()
    if orders is None:
        raise HTTPException(status_code=500, detail="Failed to fetch orders")
    return {"success": True, "orders": orders}

def create_order(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    created = orders_repository.insert_order(order_payload(body))
    if not created:
        raise HTTPException(status_code=500, detail="Failed to create order")
    logger.info("orders.service.create_order id=%s status=%s", created.get("id"), created.get("status"))
    return {"success": True, "order": created}
