from typing import Optional
from supabase import create_client, Client
from storefront.config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY

_service_supabase: Optional[Client] = None

def is_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY)

def get_service_supabase() -> Client:
    """
    Client Supabase service-role (bypass RLS), partagé par le process.
    Lève RuntimeError si SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY sont absents.
    """
    global _service_supabase
    if not is_configured():
        raise RuntimeError(
            "Supabase non configuré: définir SUPABASE_URL et SUPABASE_SERVICE_ROLE_KEY"
        )
    if _service_supabase is None:
        _service_supabase = create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
    return _service_supabase
