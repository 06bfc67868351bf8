"""
Accès aux produits (table 'products', stock par taille dans la colonne JSON 'sizes').
"""
from typing import Any, Dict, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "products"

# module storefront.products.repository
def list_products() -> Optional[List[dict]]:
    """Catalogue, plus récents d'abord. None si la lecture échoue."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("products.repository.list_products failed")
        return None

def find_product_by_code(product_code: str) -> Optional[dict]:
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .select("*")
        .eq("product_id", product_code)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def update_product_sizes(row_id: str, sizes: Dict[str, Any]) -> None:
    (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .update({"sizes": sizes})
        .eq("id", row_id)
        .execute()
    )
