#!/usr/bin/env python3
"""
Vérification des JWT Supabase (Authlib)

- RS256 via JWKS en priorité (rotation de clés), JWKS mis en cache
- repli HS256 avec le secret partagé du projet
"""

from __future__ import annotations

import time
from typing import Any

import httpx
from authlib.jose import JoseError, JsonWebKey, JsonWebToken
from loguru import logger

from edu_app.config import settings


_jwt = JsonWebToken(["RS256", "HS256"])
_jwks_keyset = None
_jwks_cached_at = 0.0


async def _get_jwks_keyset():
    """Récupère et met en cache le jeu de clés JWKS. None en cas d'échec."""
    global _jwks_keyset, _jwks_cached_at
    jwks_url: str | None = settings.SUPABASE_JWKS_URL
    if not jwks_url:
        return None

    now = time.time()
    if _jwks_keyset is not None and (now - _jwks_cached_at) < settings.SUPABASE_JWKS_TTL_SECONDS:
        return _jwks_keyset

    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            resp = await client.get(jwks_url)
            resp.raise_for_status()
            jwks_data = resp.json()
        _jwks_keyset = JsonWebKey.import_key_set(jwks_data)
        _jwks_cached_at = now
        logger.debug("JWKS rafraîchi et mis en cache")
        return _jwks_keyset
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Récupération du JWKS échouée: {e}")
        return None


async def verify_jwt_and_get_claims(token: str) -> dict[str, Any] | None:
    """Vérifie le JWT et retourne ses claims, ou None si aucune clé ne le valide."""
    if not settings.SUPABASE_JWKS_URL and not settings.SUPABASE_JWT_SECRET:
        logger.warning("Ni JWKS ni secret HS256 configuré : impossible de vérifier le JWT")
        return None

    keyset = await _get_jwks_keyset()
    if keyset is not None:
        try:
            claims = _jwt.decode(token, keyset)
            claims.validate()
            return dict(claims)
        except (JoseError, ValueError) as e:
            logger.debug(f"Vérification RS256/JWKS échouée: {e}")

    secret = settings.SUPABASE_JWT_SECRET
    if secret:
        try:
            key = JsonWebKey.import_key(secret, {"kty": "oct"})
            claims = _jwt.decode(token, key)
            claims.validate()
            return dict(claims)
        except (JoseError, ValueError) as e:
            logger.debug(f"Vérification HS256 échouée: {e}")

    return None
