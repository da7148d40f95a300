"""
Dependencias de autenticación para FastAPI.
"""
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.modules.auth.schemas import AuthContext
from app.modules.auth.utils import verify_token

# Security scheme
security = HTTPBearer()

class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_auth_context(
        credentials: HTTPAuthorizationCredentials = Depends(security)
    ) -> AuthContext:
        """
        Obtener el contexto del solicitante desde el token JWT.

        Solo valida el token; la existencia del usuario y su capacidad de
        administrador se resuelven en los servicios de facturación.
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No se pudieron validar las credenciales",
            headers={"WWW-Authenticate": "Bearer"},
        )

        payload = verify_token(credentials.credentials)
        user_id = payload.get("sub")
        token_type = payload.get("type", "access")
        if user_id is None or token_type != "access":
            raise credentials_exception

        try:
            return AuthContext(user_id=UUID(str(user_id)), token_type=token_type)
        except ValueError:
            raise credentials_exception

# Instancias de dependencias
get_auth_context = AuthDependencies.get_auth_context
