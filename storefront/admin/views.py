from typing import Optional
from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse
from storefront.utils.security import require_admin
from storefront.admin import service as admin_service

# module storefront.admin.views
router = APIRouter(prefix="/api/admin", tags=["Admin"])

def _error(e: HTTPException) -> JSONResponse:
    return JSONResponse({"success": False, "error": e.detail}, status_code=e.status_code)

@router.get("/settings")
def admin_get_settings(key: Optional[str] = None, user: dict = Depends(require_admin)):
    try:
        return JSONResponse(admin_service.get_settings(key))
    except HTTPException as e:
        return _error(e)

@router.put("/settings")
async def admin_put_settings(request: Request, user: dict = Depends(require_admin)):
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"success": False, "error": "Invalid JSON body"}, status_code=400)
    try:
        return JSONResponse(admin_service.update_settings(body))
    except HTTPException as e:
        return _error(e)

# Clés masquées, mode test/live et source pour le tableau de bord
@router.get("/stripe-config")
def admin_stripe_config(user: dict = Depends(require_admin)):
    return JSONResponse(admin_service.get_masked_stripe_config())
