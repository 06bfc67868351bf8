from typing import Optional
from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from storefront.utils.rate_limit import optional_rate_limit, SESSION_HEADER
from storefront.cart import service as cart_service

# module storefront.cart.views
router = APIRouter(prefix="/api/cart", tags=["Cart API"])

def _session_id(request: Request) -> Optional[str]:
    return request.headers.get(SESSION_HEADER) or request.query_params.get("sessionId")

def _error(e: HTTPException) -> JSONResponse:
    return JSONResponse({"success": False, "error": e.detail}, status_code=e.status_code)

async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None

@router.get("")
def get_cart(request: Request):
    try:
        return JSONResponse(cart_service.list_cart(_session_id(request)))
    except HTTPException as e:
        return _error(e)

@router.post("", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
async def add_cart_item(request: Request):
    try:
        return JSONResponse(cart_service.add_to_cart(_session_id(request), await _json_body(request)))
    except HTTPException as e:
        return _error(e)

@router.put("", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
async def update_cart_item(request: Request):
    try:
        return JSONResponse(cart_service.update_cart_item(_session_id(request), await _json_body(request)))
    except HTTPException as e:
        return _error(e)

@router.delete("", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def delete_cart_item(request: Request, id: Optional[str] = None):
    try:
        return JSONResponse(cart_service.remove_cart_item(_session_id(request), id))
    except HTTPException as e:
        return _error(e)
