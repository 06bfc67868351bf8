"""
Résolution de la configuration Stripe active.
- Priorité aux clés stockées dans les paramètres admin (settings["stripeConfig"]).
- Repli sur l'environnement; clés factices et mode test forcé si incomplet.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from storefront import config
from storefront.admin import repository as settings_repository

logger = logging.getLogger(__name__)

PLACEHOLDER_PUBLISHABLE_KEY = "pk_test_fake_example"
PLACEHOLDER_SECRET_KEY = "sk_test_fake_example"


@dataclass(frozen=True)
class ProviderConfig:
    publishable_key: str
    secret_key: str
    test_mode: bool
    source: str  # "admin" | "environment"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "publishableKey": self.publishable_key,
            "secretKey": self.secret_key,
            "testMode": self.test_mode,
            "source": self.source,
        }


def mask_key(key: Optional[str]) -> Optional[str]:
    """Masque une clé Stripe: conserve le préfixe sk_/pk_ et les 6 derniers caractères."""
    if not key:
        return None
    head = "sk_" if key.startswith("sk_") else ("pk_" if key.startswith("pk_") else "")
    return head + "…" + key[-6:]


# module storefront.payments.provider_config
def resolve_provider_config() -> ProviderConfig:
    """
    Résout {publishableKey, secretKey, testMode, source}.
    - Ne lève jamais: un échec de lecture des paramètres est journalisé puis ignoré.
    - Aucune écriture.
    """
    try:
        settings = settings_repository.get_settings_store().load().settings
        sc = settings.get("stripeConfig") if isinstance(settings, dict) else None
        if isinstance(sc, dict) and sc.get("publishableKey") and sc.get("secretKey"):
            return ProviderConfig(
                publishable_key=str(sc["publishableKey"]),
                secret_key=str(sc["secretKey"]),
                test_mode=sc.get("mode") == "test",
                source="admin",
            )
    except Exception as e:
        logger.warning("payments.provider_config admin settings unreadable, falling back to env: %s", e)

    secret_key = config.STRIPE_SECRET_KEY.strip()
    publishable_key = config.STRIPE_PUBLISHABLE_KEY.strip()
    return ProviderConfig(
        publishable_key=publishable_key or PLACEHOLDER_PUBLISHABLE_KEY,
        secret_key=secret_key or PLACEHOLDER_SECRET_KEY,
        test_mode=not (secret_key and publishable_key),
        source="environment",
    )
