from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from storefront.utils.security import require_admin
from storefront.orders import service as orders_service

# module storefront.orders.views
router = APIRouter(prefix="/api/orders", tags=["Orders API"])

@router.get("")
def admin_list_orders(user: dict = Depends(require_admin)):
    try:
        return JSONResponse(orders_service.list_orders())
    except HTTPException as e:
        return JSONResponse({"success": False, "error": e.detail}, status_code=e.status_code)

@router.post("")
async def create_order(request: Request):
    try:
        body = await request.json()
    except ValueError:
        body = None
    try:
        return JSONResponse(orders_service.create_order(body))
    except HTTPException as e:
        return JSONResponse({"success": False, "error": e.detail}, status_code=e.status_code)
