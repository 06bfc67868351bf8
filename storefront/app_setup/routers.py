"""
Registre central des routers.
- Paiements: checkout, webhook Stripe, configuration Stripe publique, session de confirmation
- Boutique: produits, panier, commandes
- Admin: paramètres, configuration Stripe masquée
- Health: health_router
"""
from fastapi import FastAPI
from storefront.payments import views as payments_views
from storefront.products.views import router as products_router
from storefront.cart.views import router as cart_router
from storefront.orders.views import router as orders_router
from storefront.admin.views import router as admin_router
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # Paiements
    app.include_router(payments_views.router)
    # Boutique
    app.include_router(products_router)
    app.include_router(cart_router)
    app.include_router(orders_router)
    # Admin
    app.include_router(admin_router)
    # Health & monitoring
    app.include_router(health_router)
