"""
Modèles SQLAlchemy partagés (chemin transactionnel de la réconciliation).
"""
from .tables import Base, Order, Product, CartItem, StripeEvent, ORDER_STATUSES

__all__ = [
    "Base",
    "Order",
    "Product",
    "CartItem",
    "StripeEvent",
    "ORDER_STATUSES",
]
