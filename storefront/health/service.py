"""
Diagnostics des datastores (Supabase, Postgres transactionnel).
"""
from urllib.parse import urlparse
from typing import Any, Dict
import socket

from sqlalchemy import text

from storefront import config
from storefront.infra import database
import storefront.infra.supabase_client as supabase_client

SUPABASE_TABLES = ["orders", "products", "cart_items", "admin_settings"]

def _check_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("*").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

# module storefront.health.service
def health_supabase_info() -> Dict[str, Any]:
    parsed = urlparse(config.SUPABASE_URL) if config.SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except Exception as e:
            dns_ok = False
            dns_error = str(e)

    info: Dict[str, Any] = {
        "configured": supabase_client.is_configured(),
        "supabase_url": config.SUPABASE_URL or None,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_service_supabase()
        for t in SUPABASE_TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = True
    except Exception as e:
        info["error"] = str(e)
    return info

async def health_database_info() -> Dict[str, Any]:
    """
    Ping SQL (SELECT 1) du datastore transactionnel.
    'configured': False quand aucun engine n'existe (réconciliation best effort).
    """
    engine = database.get_engine()
    if engine is None:
        return {"configured": False, "ok": False, "strategy": "best_effort"}
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"configured": True, "ok": True, "strategy": "transactional", "dialect": engine.dialect.name}
    except Exception as e:
        return {"configured": True, "ok": False, "strategy": "transactional", "error": str(e)}
