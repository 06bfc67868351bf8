from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from storefront.health.service import health_supabase_info, health_database_info
from storefront.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    return {"ok": True, "rate_limit": rate_limit_health_info(request)}

@router.get("/database")
async def health_database():
    info = await health_database_info()
    status = 200 if (info["ok"] or not info["configured"]) else 503
    return JSONResponse(info, status_code=status)

@router.get("/supabase")
def health_supabase():
    return JSONResponse(health_supabase_info())
