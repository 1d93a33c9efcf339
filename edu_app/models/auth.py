"""
Modèles Pydantic liés à l'authentification
"""
from pydantic import BaseModel, Field


class UserInfo(BaseModel):
    """Utilisateur authentifié par un jeton Supabase"""
    id: str = Field(..., description="ID utilisateur (UUID)")
    email: str = Field("", description="Adresse e-mail")
    access_token: str = Field(..., description="Jeton Supabase, transmis aux fonctions Edge", repr=False)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "987c5515-b439-43f0-a178-3c49ca154bb1",
                "email": "eleve@example.com",
                "access_token": "eyJhbGciOi...",
            }
        }
