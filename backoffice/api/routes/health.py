"""Health check route."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(db: Session = Depends(get_db)) -> dict:
    """Report service and database health."""
    db.execute(text("SELECT 1"))
    return {"status": "healthy", "service": settings.PROJECT_NAME.lower(), "version": settings.VERSION}
