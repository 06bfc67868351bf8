from fastapi import APIRouter
from fastapi.responses import JSONResponse
from storefront.products import repository as products_repository

# module storefront.products.views
router = APIRouter(prefix="/api/products", tags=["Products API"])

@router.get("")
def list_products():
    """Catalogue public: [{product_id, name, price, image, sizes: {taille: {stock, reserved}}}]."""
    products = products_repository.list_products()
    if products is None:
        return JSONResponse({"success": False, "error": "Failed to fetch products"}, status_code=500)
    return JSONResponse({"success": True, "products": products})
