#!/usr/bin/env python3
"""
Création des clients Supabase
"""

from typing import Optional

from loguru import logger
from supabase import Client, create_client

from edu_app.config import settings

_clients: dict[bool, Client] = {}


def get_supabase_client(use_service_key: bool = False) -> Optional[Client]:
    """
    Retourne un client Supabase mis en cache.

    use_service_key=True utilise la clé service role (contourne les RLS),
    réservé aux lectures/écritures côté serveur.
    """
    if use_service_key in _clients:
        return _clients[use_service_key]

    url = settings.SUPABASE_URL
    key = settings.SUPABASE_SERVICE_ROLE_KEY if use_service_key else settings.SUPABASE_ANON_KEY
    if not url or not key:
        logger.error("Configuration Supabase incomplète : SUPABASE_URL ou clé manquante")
        return None

    try:
        client = create_client(url, key)
    except Exception as e:
        logger.error(f"Création du client Supabase échouée: {e}")
        return None

    _clients[use_service_key] = client
    return client
