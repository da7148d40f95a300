from datetime import datetime, timezone
from typing import Annotated, Callable
from fastapi import Depends
from sqlalchemy.orm import Session
from app.database.database import get_db

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """Reloj del sistema; se sobreescribe en tests con un instante fijo."""
    return utcnow


db_dependency = Annotated[Session, Depends(get_db)]
clock_dependency = Annotated[Clock, Depends(get_clock)]
