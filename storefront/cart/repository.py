"""
Accès au panier serveur (table 'cart_items', unique par session/produit/taille).
Les erreurs Supabase remontent: le service les traduit en réponses HTTP.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import storefront.infra.supabase_client as supabase_client

TABLE = "cart_items"

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def _first(res) -> Optional[dict]:
    rows = getattr(res, "data", None) or []
    if isinstance(rows, dict):
        return rows
    return rows[0] if rows else None

# module storefront.cart.repository
def list_items(session_id: str) -> List[dict]:
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .select("*")
        .eq("session_id", session_id)
        .order("created_at", desc=True)
        .execute()
    )
    return res.data or []

def find_item(session_id: str, product_id: str, size: str) -> Optional[dict]:
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .select("id, quantity")
        .eq("session_id", session_id)
        .eq("product_id", product_id)
        .eq("size", size)
        .limit(1)
        .execute()
    )
    return _first(res)

def insert_item(payload: Dict[str, Any]) -> Optional[dict]:
    res = supabase_client.get_service_supabase().table(TABLE).insert(payload).execute()
    return _first(res)

def update_quantity(item_id: Any, session_id: str, quantity: int) -> Optional[dict]:
    """Met à jour la quantité d'une ligne appartenant à la session (None si introuvable)."""
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .update({"quantity": quantity, "updated_at": _now_iso()})
        .eq("id", item_id)
        .eq("session_id", session_id)
        .execute()
    )
    return _first(res)

def delete_item(item_id: Any, session_id: str) -> None:
    (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .delete()
        .eq("id", item_id)
        .eq("session_id", session_id)
        .execute()
    )
