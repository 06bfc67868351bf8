import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse

from storefront.utils.rate_limit import optional_rate_limit

from storefront.payments import stripe_client
from storefront.payments import service as payments_service
from storefront.payments import reconciliation
from storefront.payments.provider_config import resolve_provider_config

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Payments API"])

COMPLETED_EVENT_TYPES = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}

# module storefront.payments.views
@router.post("/create-checkout-session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def create_checkout_session(request: Request):
    """
    Crée une session Checkout Stripe.
    - Entrée JSON: {lineItems?|items?, mode?, successUrl?, cancelUrl?, customerEmail?, total?}
    - Réponse: {id, url, testMode?}
    - Erreurs: {"error": "..."} en 400 (payload) ou 500 (Stripe, message Stripe relayé)
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"error": "Invalid JSON body"}, status_code=400)
    try:
        return JSONResponse(payments_service.create_checkout_session(body))
    except HTTPException as e:
        return JSONResponse({"error": e.detail}, status_code=e.status_code)
    except Exception:
        logger.exception("Erreur create_checkout_session")
        return JSONResponse({"error": "Failed to create session"}, status_code=500)

@router.post("/stripe-webhook", include_in_schema=False)
async def stripe_webhook(request: Request):
    """
    Webhook Stripe: réconcilie commande et stock sur checkout.session.completed
    (et async_payment_succeeded).
    - 400: signature/payload invalide (aucun traitement)
    - 500: échec transactionnel (rollback, Stripe relivrera)
    - 200 "ok" / "ignored" sinon
    Les autres méthodes HTTP reçoivent 405 (route POST uniquement).
    """
    try:
        event = await stripe_client.parse_event(request)
    except stripe_client.WebhookError as e:
        logger.error("payments.webhook signature verification failed: %s", e)
        return PlainTextResponse(f"Webhook Error: {e}", status_code=400)

    event_type = event.get("type")
    if event_type not in COMPLETED_EVENT_TYPES:
        return PlainTextResponse("ignored")

    session = ((event.get("data") or {}).get("object") or {})
    session_id: Optional[str] = session.get("id")
    if not session_id:
        logger.warning("payments.webhook %s without session id", event_type)
        return PlainTextResponse("ignored")

    logger.info("payments.webhook checkout completed session_id=%s", session_id)
    reconciler = reconciliation.get_reconciler()
    try:
        outcome = await reconciler.reconcile(session_id, event_id=event.get("id"), event_type=event_type)
    except Exception:
        logger.exception("payments.webhook reconciliation failed session_id=%s strategy=%s", session_id, reconciler.name)
        return PlainTextResponse("Internal error", status_code=500)
    logger.info("payments.webhook session_id=%s strategy=%s outcome=%s", session_id, reconciler.name, outcome.value)
    return PlainTextResponse("ok")

@router.get("/stripe-config")
def public_stripe_config():
    """
    Configuration publique pour le front: {publishableKey, testMode, source}.
    """
    cfg = resolve_provider_config()
    return {"publishableKey": cfg.publishable_key, "testMode": cfg.test_mode, "source": cfg.source}

@router.get("/checkout-session")
def checkout_session(session_id: Optional[str] = None):
    """
    Détails d'une session Checkout pour la page de confirmation.
    """
    try:
        return JSONResponse(payments_service.get_checkout_session(session_id or ""))
    except HTTPException as e:
        return JSONResponse({"error": e.detail}, status_code=e.status_code)
