#!/usr/bin/env python3
"""
Script de démarrage de l'API FastAPI
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from loguru import logger

from edu_app.config import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie de l'application"""
    from edu_app.config.logging_config import setup_logging

    setup_logging(level=settings.LOG_LEVEL)

    logger.info("🚀 Démarrage de l'API abonnements...")

    from edu_app.services.subscription_store import get_subscription_store

    store = get_subscription_store()
    if store.client is not None:
        logger.info("✅ Client Supabase prêt")
    else:
        logger.warning("⚠️ Client Supabase indisponible, les lectures d'abonnement échoueront")

    logger.info(f"✅ API démarrée : {settings.get_config_summary()}")

    yield

    logger.info("👋 API arrêtée")


def create_fastapi_app() -> FastAPI:
    """Crée l'application FastAPI"""

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        debug=settings.DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.TRUSTED_HOSTS)

    from edu_app.routers import subscription

    app.include_router(subscription.router, prefix="/api/subscription", tags=["Abonnement"])

    @app.get("/")
    async def root():
        return {
            "message": f"{settings.APP_NAME} - mode {'debug' if settings.DEBUG else 'production'}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "framework": "FastAPI"}

    return app


app = create_fastapi_app()


if __name__ == "__main__":
    import uvicorn

    host = os.environ.get('SERVER_HOST', '0.0.0.0')
    port = int(os.environ.get('SERVER_PORT', 8000))

    logger.info(f"🚀 Serveur FastAPI sur http://{host}:{port}")

    uvicorn.run(
        "main_fastapi:app",
        host=host,
        port=port,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
