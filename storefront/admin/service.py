"""
Cas d'usage 'admin': lecture et mise à jour des paramètres (blob JSON versionné),
configuration Stripe masquée pour le tableau de bord.
"""
import copy
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException

from storefront.admin import repository as settings_repository
from storefront.admin.repository import SettingsConflictError
from storefront.payments.provider_config import resolve_provider_config, mask_key

logger = logging.getLogger(__name__)

PROVIDER_SETTINGS_KEY = "stripeConfig"
PROVIDER_KEY_FIELDS = ("publishableKey", "secretKey")
MASK_MARK = "…"


def masked_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Copie des paramètres où les clés Stripe sont masquées (sk_…xxxxxx)."""
    out = copy.deepcopy(settings or {})
    provider = out.get(PROVIDER_SETTINGS_KEY)
    if isinstance(provider, dict):
        for name in PROVIDER_KEY_FIELDS:
            if provider.get(name):
                provider[name] = mask_key(str(provider[name]))
    return out


def merge_settings(current: Dict[str, Any], body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Calcule le prochain blob:
    - {key, value, merge: true} et deux objets: fusion superficielle de current[key] et value
    - {key, value}: remplace current[key]
    - sinon: le body entier est fusionné dans current
    """
    current = current or {}
    key = body.get("key")
    if key:
        value = body.get("value")
        existing = current.get(key)
        if body.get("merge") and isinstance(existing, dict) and isinstance(value, dict):
            return {**current, key: {**existing, **value}}
        return {**current, key: value}
    partial = {k: v for k, v in body.items() if k != "version"}
    return {**current, **partial}


def _keep_stored_keys(current: Dict[str, Any], nxt: Dict[str, Any]) -> Dict[str, Any]:
    # Une valeur masquée renvoyée telle quelle par le front ne remplace pas la clé stockée
    provider = nxt.get(PROVIDER_SETTINGS_KEY)
    stored = current.get(PROVIDER_SETTINGS_KEY)
    if not isinstance(provider, dict) or not isinstance(stored, dict):
        return nxt
    provider = dict(provider)
    for name in PROVIDER_KEY_FIELDS:
        value = provider.get(name)
        if isinstance(value, str) and MASK_MARK in value and stored.get(name):
            provider[name] = stored[name]
    return {**nxt, PROVIDER_SETTINGS_KEY: provider}


# module storefront.admin.service
def get_settings(key: Optional[str] = None) -> Dict[str, Any]:
    try:
        snapshot = settings_repository.get_settings_store().load()
    except Exception:
        logger.exception("admin.service.get_settings failed")
        raise HTTPException(status_code=500, detail="Failed to load settings")
    settings = masked_settings(snapshot.settings)
    if key:
        return {"success": True, "key": key, "value": settings.get(key), "version": snapshot.version}
    return {"success": True, "settings": settings, "version": snapshot.version}


def update_settings(body: Any) -> Dict[str, Any]:
    """
    Applique un PUT sur les paramètres avec verrou optimiste.
    - body["version"] (optionnel): version lue par le client; 409 si elle est périmée
    - 409 si une autre écriture est passée entre la lecture et l'écriture
    Retour: {"success": True, "settings": <masqués>, "version": n}
    """
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    store = settings_repository.get_settings_store()
    try:
        snapshot = store.load()
    except Exception:
        logger.exception("admin.service.update_settings load failed")
        raise HTTPException(status_code=500, detail="Failed to save settings")

    expected = body.get("version")
    if expected is not None and str(expected) != str(snapshot.version):
        raise HTTPException(status_code=409, detail="Settings were modified, reload and retry")

    nxt = _keep_stored_keys(snapshot.settings, merge_settings(snapshot.settings, body))
    try:
        saved = store.save(snapshot, nxt)
    except SettingsConflictError as e:
        logger.warning("admin.service.update_settings conflict: %s", e)
        raise HTTPException(status_code=409, detail="Settings were modified, reload and retry")
    except Exception:
        logger.exception("admin.service.update_settings save failed")
        raise HTTPException(status_code=500, detail="Failed to save settings")
    logger.info("admin.service.update_settings saved version=%s", saved.version)
    return {"success": True, "settings": masked_settings(saved.settings), "version": saved.version}


def get_masked_stripe_config() -> Dict[str, Any]:
    cfg = resolve_provider_config()
    return {
        "success": True,
        "stripeConfig": {
            "publishableKey": mask_key(cfg.publishable_key),
            "secretKey": mask_key(cfg.secret_key),
            "mode": "test" if cfg.test_mode else "live",
            "source": cfg.source,
        },
    }
