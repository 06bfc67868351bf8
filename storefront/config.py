# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du service boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Postgres, Stripe), CORS
- Fournit l'origine du site et les chemins de redirection du checkout
- Identifie le singleton des paramètres admin (UUID ou entier)
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Supabase: URL et clé service-role (client document, opérations serveur)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or "")
SUPABASE_SERVICE_ROLE_KEY = _clean_env(
    os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_SERVICE_KEY") or ""
)

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Postgres transactionnel (vide => pas de chemin transactionnel)
DATABASE_URL = _clean_env(os.getenv("DATABASE_URL") or "")
if DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg://", 1)
elif DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+psycopg://", 1)
DB_POOL_SIZE = _int_env("DB_POOL_SIZE", 5)
DB_ECHO = (os.getenv("DB_ECHO", "false").lower() == "true")

# Stripe: clés par défaut (les paramètres admin ont priorité) et secret webhook
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_PUBLISHABLE_KEY = _clean_env(os.getenv("STRIPE_PUBLISHABLE_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_API_VERSION = _clean_env(os.getenv("STRIPE_API_VERSION") or "2023-10-16")

# Origine du site (URLs absolues exigées par Stripe)
SITE_ORIGIN = _clean_env(os.getenv("SITE_ORIGIN") or "")
REPL_URL = _clean_env(os.getenv("REPL_URL") or "")
VERCEL_URL = _clean_env(os.getenv("VERCEL_URL") or "")
LOCAL_ORIGIN = "http://localhost:3000"

# CORS: origine(s) autorisée(s), "*" par défaut
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGIN", "*").split(",") if o.strip()]

# Checkout: redirections et livraison
CHECKOUT_SUCCESS_PATH = os.getenv("CHECKOUT_SUCCESS_PATH", "/api/checkout-success")
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/api/checkout-cancel")
SHIPPING_ALLOWED_COUNTRIES = [
    c.strip().upper() for c in os.getenv("SHIPPING_ALLOWED_COUNTRIES", "US,CA").split(",") if c.strip()
]

# Paramètres admin (singleton): UUID prioritaire, entier en repli
ADMIN_SETTINGS_ID = _clean_env(os.getenv("ADMIN_SETTINGS_ID") or "")
ADMIN_SETTINGS_ID_INT = _int_env("ADMIN_SETTINGS_ID_INT", 1)
ADMIN_SETTINGS_JSON = os.getenv("ADMIN_SETTINGS_JSON") or ""

# Auth admin (JWT HS256)
JWT_SECRET = _clean_env(os.getenv("JWT_SECRET") or "")

# Rate limiting (fastapi-limiter)
RATE_LIMIT_REDIS_URL = _clean_env(os.getenv("RATE_LIMIT_REDIS_URL") or "redis://127.0.0.1:6379/0")


def resolve_site_origin() -> str:
    """
    Origine absolue du site, par ordre de priorité:
    SITE_ORIGIN, REPL_URL, https://VERCEL_URL, première origine CORS explicite, localhost.
    Lue à l'appel pour rester pilotable en test (monkeypatch des constantes).
    """
    cors = next((o for o in CORS_ORIGINS if o != "*"), "")
    origin = (
        SITE_ORIGIN
        or REPL_URL
        or (f"https://{VERCEL_URL}" if VERCEL_URL else "")
        or cors
        or LOCAL_ORIGIN
    )
    return origin.rstrip("/")
