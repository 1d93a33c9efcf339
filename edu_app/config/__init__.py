"""
Configuration de l'application
"""

from .settings import settings

__all__ = ['settings']
