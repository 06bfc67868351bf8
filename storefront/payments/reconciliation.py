"""
Réconciliation d'un paiement terminé: commande -> 'paid' et décrément du stock par taille.

Deux stratégies derrière la même interface `reconcile(session_id, event_id, event_type)`:
- TransactionalReconciler: transaction SQL, SELECT ... FOR UPDATE sur la commande puis sur
  chaque produit; toute exception annule la transaction et remonte (Stripe relivrera).
  Les événements appliqués sont enregistrés dans stripe_events (une relivraison est ignorée).
- BestEffortReconciler: mêmes étapes via Supabase, sans verrou ni rollback; les erreurs sont
  journalisées et l'événement acquitté (mode dégradé, sans déduplication).

get_reconciler() choisit la stratégie selon la disponibilité du datastore transactionnel.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.infra import database
from storefront.models import Order, Product, StripeEvent
from storefront.orders import repository as orders_repository
from storefront.products import repository as products_repository

logger = logging.getLogger(__name__)


class ReconciliationOutcome(str, Enum):
    PAID = "paid"
    ORDER_MISSING = "order_missing"
    DUPLICATE = "duplicate"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class PurchasedItem:
    product_code: str
    size: str
    quantity: int


def _quantity(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def purchased_items(items: Optional[Iterable[Dict[str, Any]]]) -> List[PurchasedItem]:
    """
    Extrait les lignes exploitables de order.items.
    - Accepte productId ou product_id.
    - Ignore les lignes sans produit, sans taille, ou de quantité <= 0.
    """
    result: List[PurchasedItem] = []
    for it in items or []:
        if not isinstance(it, dict):
            continue
        code = it.get("productId") or it.get("product_id")
        size = it.get("size")
        qty = _quantity(it.get("quantity"))
        if not code or not size or qty <= 0:
            continue
        result.append(PurchasedItem(product_code=str(code), size=str(size), quantity=qty))
    return result


def decrement_variant(sizes: Dict[str, Any], size: str, quantity: int) -> Dict[str, Any]:
    """
    Retourne une nouvelle map des tailles où sizes[size] est décrémenté de `quantity`.
    stock et reserved sont bornés à 0; les autres clés de la variante sont conservées.
    """
    current = dict(sizes.get(size) or {})
    stock = int(current.get("stock") or 0)
    reserved = int(current.get("reserved") or 0)
    current["stock"] = max(stock - quantity, 0)
    current["reserved"] = max(reserved - quantity, 0)
    updated = dict(sizes)
    updated[size] = current
    return updated


# module storefront.payments.reconciliation
class TransactionalReconciler:
    name = "transactional"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def reconcile(
        self,
        session_id: str,
        event_id: Optional[str] = None,
        event_type: str = "checkout.session.completed",
    ) -> ReconciliationOutcome:
        async with self._session_factory() as db:
            async with db.begin():
                order = (
                    await db.execute(
                        select(Order).where(Order.stripe_session_id == session_id).with_for_update()
                    )
                ).scalar_one_or_none()
                if order is None:
                    logger.warning("payments.reconciliation no order for session_id=%s", session_id)
                    return ReconciliationOutcome.ORDER_MISSING

                # Vérifié après le verrou de la commande: deux livraisons du même événement sont sérialisées
                if event_id:
                    seen = (
                        await db.execute(select(StripeEvent.id).where(StripeEvent.stripe_event_id == event_id))
                    ).scalar_one_or_none()
                    if seen is not None:
                        logger.info("payments.reconciliation duplicate event_id=%s session_id=%s", event_id, session_id)
                        return ReconciliationOutcome.DUPLICATE

                # Commande déjà payée (ex: completed puis async_payment_succeeded): stock déjà décrémenté
                if order.status == "paid":
                    logger.info("payments.reconciliation order already paid session_id=%s event_type=%s", session_id, event_type)
                    if event_id:
                        db.add(StripeEvent(stripe_event_id=event_id, event_type=event_type))
                    return ReconciliationOutcome.DUPLICATE

                for item in purchased_items(order.items):
                    product = (
                        await db.execute(
                            select(Product).where(Product.product_id == item.product_code).with_for_update()
                        )
                    ).scalar_one_or_none()
                    if product is None:
                        logger.warning("payments.reconciliation product not found product_id=%s", item.product_code)
                        continue
                    product.sizes = decrement_variant(product.sizes or {}, item.size, item.quantity)

                order.status = "paid"
                if event_id:
                    db.add(StripeEvent(stripe_event_id=event_id, event_type=event_type))

        logger.info("payments.reconciliation committed session_id=%s", session_id)
        return ReconciliationOutcome.PAID


class BestEffortReconciler:
    name = "best_effort"

    async def reconcile(
        self,
        session_id: str,
        event_id: Optional[str] = None,
        event_type: str = "checkout.session.completed",
    ) -> ReconciliationOutcome:
        try:
            order = orders_repository.find_order_by_stripe_session(session_id)
            if not order:
                logger.warning("payments.reconciliation (supabase) no order for session_id=%s", session_id)
                return ReconciliationOutcome.ORDER_MISSING

            if order.get("status") == "paid":
                logger.info("payments.reconciliation (supabase) order already paid session_id=%s", session_id)
                return ReconciliationOutcome.DUPLICATE

            for item in purchased_items(order.get("items")):
                try:
                    product = products_repository.find_product_by_code(item.product_code)
                except Exception as e:
                    logger.warning("payments.reconciliation (supabase) product lookup failed product_id=%s: %s", item.product_code, e)
                    continue
                if not product:
                    logger.warning("payments.reconciliation (supabase) product not found product_id=%s", item.product_code)
                    continue
                sizes = decrement_variant(product.get("sizes") or {}, item.size, item.quantity)
                products_repository.update_product_sizes(product["id"], sizes)

            orders_repository.mark_order_paid(order["id"])
            return ReconciliationOutcome.PAID
        except Exception:
            logger.exception("payments.reconciliation (supabase) failed session_id=%s", session_id)
            return ReconciliationOutcome.DEGRADED


def get_reconciler():
    """
    Stratégie transactionnelle si un engine SQL est disponible, sinon best effort.
    """
    factory = database.get_session_factory()
    if factory is not None:
        return TransactionalReconciler(factory)
    return BestEffortReconciler()
