"""
Cas d'usage 'cart': panier serveur rattaché à un identifiant de session anonyme.
- Ajout = upsert par (session, produit, taille): la quantité s'additionne.
- Quantités toujours >= 1.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException

from storefront.cart import repository as cart_repository

logger = logging.getLogger(__name__)

def _quantity(value: Any) -> int:
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        return 1

def _require_session(session_id: Optional[str]) -> str:
    if not session_id:
        raise HTTPException(status_code=400, detail="X-Session-Id header required")
    return str(session_id)

def cart_item_payload(session_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Valide et normalise une ligne de panier.
    - productId, name, price, size obligatoires; price numérique (400 sinon)
    - quantity >= 1 (1 par défaut)
    """
    product_id = body.get("productId")
    name = body.get("name")
    size = body.get("size")
    if not product_id or not name or body.get("price") is None or not size:
        raise HTTPException(status_code=400, detail="productId, name, price, size are required")
    try:
        price = float(body.get("price"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="price must be numeric")
    if price != price:
        raise HTTPException(status_code=400, detail="price must be numeric")
    return {
        "session_id": session_id,
        "product_id": str(product_id).strip(),
        "name": str(name).strip(),
        "price": price,
        "image": body.get("image") or None,
        "size": str(size).strip(),
        "quantity": _quantity(body.get("quantity", 1)),
    }

# module storefront.cart.service
def list_cart(session_id: Optional[str]) -> Dict[str, Any]:
    sid = _require_session(session_id)
    try:
        return {"success": True, "items": cart_repository.list_items(sid)}
    except Exception:
        logger.exception("cart.service.list_cart failed")
        raise HTTPException(status_code=500, detail="Failed to fetch cart")

def add_to_cart(session_id: Optional[str], body: Any) -> Dict[str, Any]:
    sid = _require_session(session_id)
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    payload = cart_item_payload(sid, body)
    try:
        existing = cart_repository.find_item(sid, payload["product_id"], payload["size"])
    except Exception:
        logger.exception("cart.service.add_to_cart lookup failed")
        raise HTTPException(status_code=500, detail="Failed to check cart")
    try:
        if existing:
            new_qty = int(existing.get("quantity") or 0) + payload["quantity"]
            item = cart_repository.update_quantity(existing["id"], sid, new_qty)
        else:
            item = cart_repository.insert_item(payload)
    except Exception as e:
        logger.warning("cart.service.add_to_cart write failed: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "item": item}

def update_cart_item(session_id: Optional[str], body: Any) -> Dict[str, Any]:
    sid = _require_session(session_id)
    if not isinstance(body, dict) or not body.get("id") or body.get("quantity") is None:
        raise HTTPException(status_code=400, detail="id and quantity required")
    try:
        item = cart_repository.update_quantity(body["id"], sid, _quantity(body.get("quantity")))
    except Exception as e:
        logger.warning("cart.service.update_cart_item failed: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    if item is None:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return {"success": True, "item": item}

def remove_cart_item(session_id: Optional[str], item_id: Optional[str]) -> Dict[str, Any]:
    sid = _require_session(session_id)
    if not item_id:
        raise HTTPException(status_code=400, detail="id required")
    try:
        cart_repository.delete_item(item_id, sid)
    except Exception as e:
        logger.warning("cart.service.remove_cart_item failed: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True}
