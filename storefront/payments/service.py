"""
Cas d'usage 'payments': orchestre line_items, provider_config, stripe_client, orders.
"""
import logging
import secrets
from typing import Any, Dict, Optional

from fastapi import HTTPException

from storefront import config
from storefront.orders import repository as orders_repository
from . import line_items as li
from . import stripe_client
from .provider_config import resolve_provider_config

logger = logging.getLogger(__name__)

MOCK_CHECKOUT_URL = "#mock-checkout"

def _pending_order_payload(request: li.CheckoutRequest) -> Dict[str, Any]:
    """
    Commande 'pending' créée avant l'appel Stripe; `items` garde le panier brut
    (productId, size, quantity) pour la réconciliation, avec la quantité facturée.
    """
    return {
        "session_id": request.sessionId,
        "stripe_payment_intent_id": None,
        "stripe_session_id": None,
        "total": float(request.total or 0),
        "status": "pending",
        "customer_email": request.customerEmail,
        "shipping_address": None,
        "billing_address": None,
        "items": [dict(it.model_dump(exclude_none=True), quantity=int(it.quantity or 1)) for it in request.items],
    }

def _provider_message(e: Exception) -> str:
    # Les erreurs Stripe exposent user_message; sinon le message brut
    return str(getattr(e, "user_message", None) or e) or "Stripe session creation failed"

def create_checkout_session(body: Any) -> Dict[str, Any]:
    """
    Crée une session Checkout Stripe à partir d'un payload lineItems ou items (legacy).
    Étapes:
      1) Normaliser les lignes (400 si aucune)
      2) URLs de succès/annulation absolues (origine du site)
      3) Nettoyer les images des lignes
      4) Créer la commande 'pending' (best effort, n'interrompt jamais le checkout)
      5) Mode test: session factice, sinon session Stripe réelle (500 si Stripe échoue)
      6) Renseigner stripe_session_id sur la commande
    Retour: {"id", "url"} (+ "testMode": True en mode test)
    """
    request = li.parse_checkout_request(body)
    if not request.lineItems and request.items:
        logger.info("payments.checkout legacy items payload, mapping to lineItems")
    line_items = li.to_line_items(request)

    origin = config.resolve_site_origin()
    success_url = li.make_absolute(request.successUrl or config.CHECKOUT_SUCCESS_PATH, origin)
    cancel_url = li.make_absolute(request.cancelUrl or config.CHECKOUT_CANCEL_PATH, origin)

    provider_config = resolve_provider_config()
    logger.info(
        "payments.checkout config source=%s testMode=%s line_items=%s success_url=%s cancel_url=%s",
        provider_config.source, provider_config.test_mode, len(line_items), success_url, cancel_url,
    )
    stripe_line_items = li.sanitize_line_items(line_items)

    order = orders_repository.insert_order(_pending_order_payload(request))
    order_id: Optional[str] = (order or {}).get("id")
    if not order_id:
        logger.warning("payments.checkout continuing without order record")

    if provider_config.test_mode:
        mock_id = "cs_test_" + secrets.token_hex(4)
        logger.info("payments.checkout test mode, mock session=%s", mock_id)
        if order_id:
            orders_repository.attach_stripe_session(order_id, mock_id)
        return {"id": mock_id, "url": MOCK_CHECKOUT_URL, "testMode": True}

    try:
        session = stripe_client.create_session(
            provider_config=provider_config,
            line_items=stripe_line_items,
            mode=request.mode,
            success_url=success_url,
            cancel_url=cancel_url,
            customer_email=request.customerEmail,
            allowed_countries=config.SHIPPING_ALLOWED_COUNTRIES,
        )
    except Exception as e:
        logger.exception("payments.checkout stripe error order_id=%s", order_id)
        raise HTTPException(status_code=500, detail=_provider_message(e))

    session_id = session.get("id")
    if order_id and session_id:
        orders_repository.attach_stripe_session(order_id, session_id)
    return {"id": session_id, "url": session.get("url")}

def get_checkout_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère la session Stripe (page de confirmation).
    - 400 si session_id manquant, 500 si Stripe échoue.
    """
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing session_id")
    try:
        return stripe_client.get_session(resolve_provider_config(), session_id)
    except Exception:
        logger.exception("payments.get_checkout_session failed session_id=%s", session_id)
        raise HTTPException(status_code=500, detail="Failed to fetch session")
