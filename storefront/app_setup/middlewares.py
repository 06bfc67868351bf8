"""
Middlewares transverses de l'application.
- register_basic_middlewares: CORS (origines de CORS_ORIGIN, en-têtes Authorization / X-Session-Id).
- register_security_middleware: en-têtes de sécurité sur toutes les réponses.
"""
from fastapi import Request, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from storefront.config import CORS_ORIGINS

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

def register_basic_middlewares(app: FastAPI) -> None:
    """
    CORSMiddleware: "*" autorise toutes les origines, sans credentials
    (les navigateurs refusent la combinaison "*" + credentials).
    """
    wildcard = "*" in CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else CORS_ORIGINS,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Session-Id", "Stripe-Signature"],
    )

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            if name not in response.headers:
                response.headers[name] = value
        return response
