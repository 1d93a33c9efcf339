"""
Dépendance d'authentification : vérification locale du JWT Supabase
"""

import json

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from edu_app.models.auth import UserInfo
from edu_app.security.jwt import verify_jwt_and_get_claims

security = HTTPBearer()


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> UserInfo:
    token = credentials.credentials
    if not isinstance(token, str):
        logger.warning(f"Type d'Authorization invalide: {type(token)}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Jeton d'authentification invalide")
    token = token.strip()
    if not token or token.lower() in {"null", "undefined", "none"}:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Jeton d'authentification invalide")
    # Certains clients envoient la session entière : {"access_token":"..."}
    if token.startswith("{") and token.endswith("}"):
        try:
            obj = json.loads(token)
        except json.JSONDecodeError:
            obj = {}
        possible = obj.get("access_token") or obj.get("token")
        if isinstance(possible, str) and possible:
            token = possible

    claims = await verify_jwt_and_get_claims(token)
    if not claims:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Jeton d'authentification invalide")
    user_id = claims.get("sub") or claims.get("user_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Identifiant utilisateur absent du jeton")

    return UserInfo(id=user_id, email=claims.get("email") or "", access_token=token)


async def get_current_active_user(current_user: UserInfo = Depends(get_current_user)) -> UserInfo:
    return current_user
