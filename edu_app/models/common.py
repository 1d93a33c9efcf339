"""
Modèles de réponse communs
"""
from typing import Any, Optional

from pydantic import BaseModel, Field


class APIResponse(BaseModel):
    """Enveloppe de réponse standard"""
    success: bool = Field(True, description="Succès de l'opération")
    message: str = Field("", description="Message affichable")
    data: Optional[Any] = Field(None, description="Données")
