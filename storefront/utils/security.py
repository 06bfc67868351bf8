from fastapi import Request, HTTPException, Depends
from typing import Optional, Dict, Any
import jwt

from storefront import config

def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None

def get_admin_claims(request: Request) -> Dict[str, Any]:
    """
    Vérifie le JWT admin (HS256, JWT_SECRET) porté par Authorization: Bearer.
    - 500 si JWT_SECRET n'est pas configuré
    - 401 si le token est absent, invalide ou expiré
    - 403 si le token porte un rôle autre que 'admin' (sauf isAdmin=true)
    """
    secret = config.JWT_SECRET
    if not secret:
        raise HTTPException(status_code=500, detail="Server misconfiguration: JWT_SECRET not set")
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Missing Authorization Bearer token")
    try:
        claims = jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    role = claims.get("role")
    if role and role != "admin" and not claims.get("isAdmin"):
        raise HTTPException(status_code=403, detail="Forbidden")
    return claims

def require_admin(claims: Dict[str, Any] = Depends(get_admin_claims)) -> Dict[str, Any]:
    return claims
