"""
FastAPI dependencies.
"""

from typing import Generator, Optional
from fastapi import Header, HTTPException
from sqlalchemy.orm import Session
from app.database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Identity of the caller, established upstream by the session layer and
    forwarded in the ``X-User-Id`` header.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return x_user_id
