#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration de l'API abonnements - Supabase + fonctions Edge Stripe
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Charger le fichier .env à la racine du backend
backend_root = Path(__file__).parent.parent.parent
env_path = backend_root / ".env"
load_dotenv(env_path)

# Configuration de base
DEBUG = os.getenv("DEBUG", "True").lower() == "true"

# Supabase (base de données, auth, fonctions Edge)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
SUPABASE_JWKS_URL = os.getenv("SUPABASE_JWKS_URL")
SUPABASE_JWKS_TTL_SECONDS = int(os.getenv("SUPABASE_JWKS_TTL_SECONDS", "900"))

# Site front (URLs de retour du checkout)
SITE_URL = os.getenv("SITE_URL", "http://localhost:8080")

# Identifiants de prix Stripe
STRIPE_PRICE_PREMIUM = os.getenv("STRIPE_PRICE_PREMIUM", "price_1SNu6P37eeTawvFRvh1JGgOC")
STRIPE_PRICE_PRO = os.getenv("STRIPE_PRICE_PRO", "price_1SNu6N37eeTawvFR0CRbzo7F")
STRIPE_PRICE_AI_10MIN = os.getenv("STRIPE_PRICE_AI_10MIN", "price_1SNu6D37eeTawvFRAVwbpsol")
STRIPE_PRICE_AI_30MIN = os.getenv("STRIPE_PRICE_AI_30MIN", "price_1SNu6B37eeTawvFRjJ20hc7w")
STRIPE_PRICE_AI_60MIN = os.getenv("STRIPE_PRICE_AI_60MIN", "price_1SNu5g37eeTawvFRdsQ1vIYp")

# Durée d'une période créée pour un nouvel utilisateur basic (jours)
BASIC_PERIOD_DAYS = int(os.getenv("BASIC_PERIOD_DAYS", "30"))

# Journalisation
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:8080,http://127.0.0.1:8080").split(",")
    if origin.strip()
]

TRUSTED_HOSTS = ["*"]

# Informations de l'application
APP_NAME = "Edu Subscription API"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Abonnements, quotas mensuels et minutes IA"


def validate_config():
    """Vérifier la configuration"""
    errors = []

    if not SUPABASE_URL:
        errors.append("SUPABASE_URL is required")
    if not SUPABASE_ANON_KEY:
        errors.append("SUPABASE_ANON_KEY is required")
    if not SUPABASE_JWKS_URL and not SUPABASE_JWT_SECRET:
        errors.append("SUPABASE_JWKS_URL or SUPABASE_JWT_SECRET is required to verify tokens")

    if errors:
        raise ValueError(f"Configuration errors: {', '.join(errors)}")


# Vérification à l'import
try:
    validate_config()
except ValueError as e:
    print(f"⚠️  Configuration warning: {e}")


def get_config_summary():
    """Résumé de la configuration"""
    return {
        "app_name": APP_NAME,
        "app_version": APP_VERSION,
        "debug": DEBUG,
        "database": "Supabase",
        "billing": "Stripe (fonctions Edge)",
        "site_url": SITE_URL,
    }


class Settings:
    """Objet de configuration"""
    def __init__(self):
        self.DEBUG = DEBUG
        self.APP_NAME = APP_NAME
        self.APP_VERSION = APP_VERSION
        self.APP_DESCRIPTION = APP_DESCRIPTION

        # Supabase
        self.SUPABASE_URL = SUPABASE_URL
        self.SUPABASE_ANON_KEY = SUPABASE_ANON_KEY
        self.SUPABASE_SERVICE_ROLE_KEY = SUPABASE_SERVICE_ROLE_KEY
        self.SUPABASE_JWT_SECRET = SUPABASE_JWT_SECRET
        self.SUPABASE_JWKS_URL = SUPABASE_JWKS_URL
        self.SUPABASE_JWKS_TTL_SECONDS = SUPABASE_JWKS_TTL_SECONDS

        # Checkout
        self.SITE_URL = SITE_URL
        self.STRIPE_PRICE_PREMIUM = STRIPE_PRICE_PREMIUM
        self.STRIPE_PRICE_PRO = STRIPE_PRICE_PRO
        self.STRIPE_PRICE_AI_10MIN = STRIPE_PRICE_AI_10MIN
        self.STRIPE_PRICE_AI_30MIN = STRIPE_PRICE_AI_30MIN
        self.STRIPE_PRICE_AI_60MIN = STRIPE_PRICE_AI_60MIN
        self.BASIC_PERIOD_DAYS = BASIC_PERIOD_DAYS

        self.LOG_LEVEL = LOG_LEVEL
        self.CORS_ORIGINS = CORS_ORIGINS
        self.TRUSTED_HOSTS = TRUSTED_HOSTS

    @property
    def checkout_success_url(self) -> str:
        return f"{self.SITE_URL.rstrip('/')}/profile?checkout=success"

    @property
    def checkout_cancel_url(self) -> str:
        return f"{self.SITE_URL.rstrip('/')}/profile?checkout=canceled"

    def get_config_summary(self):
        """Résumé de la configuration"""
        return get_config_summary()


# Instance globale
settings = Settings()
