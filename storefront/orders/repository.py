"""
Accès aux commandes via Supabase (client service-role).
- Écritures « best effort » (insert_order, attach_stripe_session): erreurs journalisées, None/False retourné.
- Lectures/écritures de la réconciliation dégradée (find_*, mark_order_paid): les erreurs remontent.
"""
from typing import Any, Dict, List, Optional
import logging
import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

TABLE = "orders"

# module storefront.orders.repository
def insert_order(payload: Dict[str, Any]) -> Optional[dict]:
    """
    Insère une commande et retourne la ligne créée, ou None en cas d'échec.
    """
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(payload).execute()
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.insert_order failed email=%s", payload.get("customer_email"))
        return None

def attach_stripe_session(order_id: str, stripe_session_id: str) -> bool:
    """
    Renseigne stripe_session_id sur la commande (unique par session).
    """
    try:
        (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update({"stripe_session_id": stripe_session_id})
            .eq("id", order_id)
            .execute()
        )
        return True
    except Exception:
        logger.exception("orders.repository.attach_stripe_session failed id=%s session=%s", order_id, stripe_session_id)
        return False

def list_orders(limit: int = 500) -> Optional[List[dict]]:
    """Commandes, plus récentes d'abord. None si la lecture échoue."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_orders failed")
        return None

def find_order_by_stripe_session(stripe_session_id: str) -> Optional[dict]:
    res = (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .select("*")
        .eq("stripe_session_id", stripe_session_id)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return rows[0] if rows else None

def mark_order_paid(order_id: str) -> None:
    (
        supabase_client.get_service_supabase()
        .table(TABLE)
        .update({"status": "paid"})
        .eq("id", order_id)
        .execute()
    )
