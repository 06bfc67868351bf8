"""
Normalisation des paiements checkout (pas de Stripe, pas de DB).
- Accepte deux formes de payload: `lineItems` (format Stripe) ou `items` (panier legacy).
- Les deux sont converties en LineItem avant toute logique métier.
"""
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from pydantic import BaseModel, ConfigDict, Field, ValidationError

MAX_IMAGE_URL_LENGTH = 2000


class ProductData(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = "Article"
    images: List[Any] = Field(default_factory=list)


class PriceData(BaseModel):
    """price_data inline: `product_data` ou un produit Stripe existant (`product`), `unit_amount` ou `unit_amount_decimal`."""

    model_config = ConfigDict(extra="allow")

    currency: str = "usd"
    unit_amount: Optional[int] = None
    product_data: Optional[ProductData] = None


class LineItem(BaseModel):
    """Ligne Stripe: soit un price_id ('price'), soit un price_data inline."""

    model_config = ConfigDict(extra="allow")

    quantity: int = 1
    price: Optional[str] = None
    price_data: Optional[PriceData] = None

    def to_stripe(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class LegacyCartItem(BaseModel):
    """Article du panier côté client: {productId, name, price, image, size, quantity}."""

    model_config = ConfigDict(extra="allow")

    productId: Optional[str] = None
    name: str = ""
    price: float = 0
    image: Optional[str] = None
    size: Optional[str] = None
    quantity: Optional[int] = 1
    currency: Optional[str] = None

    def to_line_item(self) -> LineItem:
        label = f"{self.name} ({self.size})" if self.size else self.name
        return LineItem(
            quantity=int(self.quantity or 1),
            price_data=PriceData(
                currency=self.currency or "usd",
                unit_amount=int(round(float(self.price or 0) * 100)),
                product_data=ProductData(name=label, images=[self.image] if self.image else []),
            ),
        )


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    lineItems: List[LineItem] = Field(default_factory=list)
    items: List[LegacyCartItem] = Field(default_factory=list)
    mode: str = "payment"
    successUrl: Optional[str] = None
    cancelUrl: Optional[str] = None
    customerEmail: Optional[str] = None
    total: Optional[float] = None
    sessionId: Optional[str] = None


# module storefront.payments.line_items
def parse_checkout_request(body: Any) -> CheckoutRequest:
    """
    Valide le body JSON du checkout.
    - Soulève HTTPException(400) si le body n'est pas un objet ou si les types sont invalides.
    """
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Corps JSON invalide")
    try:
        return CheckoutRequest.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()))
        raise HTTPException(status_code=400, detail=f"Champ invalide: {where}" if where else "Payload invalide")

def to_line_items(request: CheckoutRequest) -> List[LineItem]:
    """
    Construit les lignes à partir de `lineItems`, ou à défaut du panier legacy `items`.
    - Soulève HTTPException(400) si aucune ligne n'est exploitable.
    """
    line_items = list(request.lineItems)
    if not line_items and request.items:
        line_items = [it.to_line_item() for it in request.items]
    if not line_items:
        raise HTTPException(status_code=400, detail="lineItems required")
    return line_items

def sanitize_image_url(url: Any) -> Optional[str]:
    """
    Retourne l'URL si Stripe peut l'accepter (http(s), <= 2000 caractères), sinon None.
    """
    if not url or not isinstance(url, str):
        return None
    if len(url) > MAX_IMAGE_URL_LENGTH:
        return None
    if not (url.startswith("http://") or url.startswith("https://")):
        return None
    return url

def sanitize_line_items(line_items: List[LineItem]) -> List[Dict[str, Any]]:
    """
    Filtre les images invalides de chaque ligne; une URL invalide n'exclut jamais la ligne.
    Retour: lignes au format Stripe (dict).
    """
    sanitized: List[Dict[str, Any]] = []
    for li in line_items:
        if li.price_data is not None and li.price_data.product_data is not None:
            images = [u for u in (sanitize_image_url(i) for i in li.price_data.product_data.images) if u]
            li = li.model_copy(deep=True)
            li.price_data.product_data.images = images
        sanitized.append(li.to_stripe())
    return sanitized

def make_absolute(url: Optional[str], origin: str) -> Optional[str]:
    """
    Rend une URL absolue par rapport à `origin` (sans slash final).
    Les URLs déjà absolues (http:// ou https://) sont retournées telles quelles.
    """
    if not url:
        return url
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return origin.rstrip("/") + (url if url.startswith("/") else "/" + url)
