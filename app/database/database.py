from typing import Optional
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Almacén relacional de la aplicación.

    Se abre al iniciar el servicio (`connect`) y se cierra al apagarlo
    (`dispose`). Los servicios reciben sesiones, nunca el engine.
    """

    def __init__(self, url: str, **engine_options):
        self.url = url
        self.engine_options = engine_options
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None

    @classmethod
    def from_settings(cls) -> "Database":
        options = {"pool_pre_ping": True, "echo": settings.DEBUG}
        if not settings.database_url.startswith("sqlite"):
            options.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW
            )
        return cls(settings.database_url, **options)

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def connect(self) -> None:
        if self.is_connected:
            return
        self.engine = create_engine(self.url, **self.engine_options)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )
        logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")

    def create_all(self) -> None:
        """Crea las tablas (solo desarrollo y tests; en producción usar migraciones)."""
        # Registers every model on Base.metadata
        import app.modules.auth.models  # noqa: F401
        import app.modules.billing.models  # noqa: F401

        self.connect()
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        if not self.is_connected:
            raise RuntimeError("Database is not connected")
        return self.SessionLocal()

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.SessionLocal = None


def get_db(request: Request):
    """Genera una sesión de base de datos ligada a la petición."""
    db = request.app.state.database.session()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error: {e}")
        db.rollback()
        raise
    finally:
        db.close()
