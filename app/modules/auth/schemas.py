from pydantic import BaseModel
from uuid import UUID


class AuthContext(BaseModel):
    """Contexto de autenticación extraído del token."""
    user_id: UUID
    token_type: str = "access"
