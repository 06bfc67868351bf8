"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
"""
import json
import logging
import stripe
from typing import Any, Dict, List, Optional
from fastapi import Request

from storefront import config
from storefront.config import STRIPE_API_VERSION
from storefront.payments.provider_config import ProviderConfig, mask_key

logger = logging.getLogger(__name__)

# module storefront.payments.stripe_client
def require_stripe(provider_config: ProviderConfig):
    """
    Prépare et retourne le module stripe configuré avec la clé résolue.
    - Journalise la configuration avec les clés masquées.
    - Lève RuntimeError si aucune clé secrète n'est disponible.
    """
    if not provider_config.secret_key:
        raise RuntimeError("Clé secrète Stripe manquante")
    masked = dict(provider_config.to_dict(), secretKey=mask_key(provider_config.secret_key))
    logger.info("payments.stripe_client using config %s", masked)
    stripe.api_key = provider_config.secret_key
    stripe.api_version = STRIPE_API_VERSION
    return stripe

def _as_dict(obj: Any) -> Dict[str, Any]:
    # StripeObject -> dict récursif (selon la version du SDK)
    if isinstance(obj, dict):
        return obj
    for attr in ("to_dict_recursive", "to_dict"):
        fn = getattr(obj, attr, None)
        if callable(fn):
            return fn()
    return dict(obj)

def create_session(
    *,
    provider_config: ProviderConfig,
    line_items: List[Dict[str, Any]],
    mode: str,
    success_url: str,
    cancel_url: str,
    customer_email: Optional[str],
    allowed_countries: List[str],
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout hébergée.
    - Collecte de l'adresse de livraison limitée à allowed_countries.
    - Collecte du numéro de téléphone activée.
    Retour: dict session (ex: {"id": "cs_live_...", "url": "https://..."})
    """
    require_stripe(provider_config)
    params: Dict[str, Any] = {
        "mode": mode,
        "line_items": line_items,
        "success_url": success_url,
        "cancel_url": cancel_url,
        "shipping_address_collection": {"allowed_countries": allowed_countries},
        "phone_number_collection": {"enabled": True},
    }
    if customer_email:
        params["customer_email"] = customer_email
    session = stripe.checkout.Session.create(**params)
    return _as_dict(session)

def get_session(provider_config: ProviderConfig, session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Checkout (page de succès), détails client inclus.
    """
    require_stripe(provider_config)
    session = stripe.checkout.Session.retrieve(session_id, expand=["customer_details"])
    return _as_dict(session)

def construct_event(payload: bytes, sig_header: str, secret: str) -> Dict[str, Any]:
    """
    Vérifie la signature Stripe-Signature et retourne l'événement (dict).
    Lève stripe.SignatureVerificationError / ValueError si invalide.
    """
    event = stripe.Webhook.construct_event(payload, sig_header, secret)
    return _as_dict(event)

class WebhookError(ValueError):
    """Webhook refusé: signature invalide ou payload illisible."""

def _signature_header(request: Request) -> Optional[str]:
    return request.headers.get("stripe-signature") or request.headers.get("stripe_signature")

async def parse_event(request: Request) -> Dict[str, Any]:
    """
    Lit le body brut + en-tête Stripe-Signature et retourne l'événement.
    - Secret configuré: signature obligatoire et vérifiée (Webhook.construct_event).
    - Sans STRIPE_WEBHOOK_SECRET: body parsé sans vérification (dev local uniquement, non sécurisé).
    Lève WebhookError si la signature ou le payload est invalide.
    """
    payload = await request.body()
    sig_header = _signature_header(request)
    secret = config.STRIPE_WEBHOOK_SECRET
    if secret:
        if not sig_header or not payload:
            raise WebhookError("Missing Stripe-Signature header or body")
        try:
            return construct_event(payload, sig_header, secret)
        except Exception as e:
            raise WebhookError(str(e)) from e

    logger.warning("payments.webhook STRIPE_WEBHOOK_SECRET absent, event not verified")
    try:
        event = json.loads(payload.decode("utf-8") or "{}")
    except ValueError as e:
        raise WebhookError(f"Invalid payload: {e}") from e
    if not isinstance(event, dict):
        raise WebhookError("Invalid payload: expected an object")
    return event
