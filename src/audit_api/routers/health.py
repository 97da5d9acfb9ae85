"""Health check router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from audit_api.database import get_db
from audit_api.utils.secure_logging import log_error

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/db")
async def database_health(db: Annotated[AsyncSession, Depends(get_db)]) -> dict[str, str]:
    """Ping the database and report its server version."""
    try:
        result = await db.execute(text("SELECT version()"))
        version = result.scalar_one()
    except SQLAlchemyError as e:
        log_error(logger, "Database health check failed", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service temporarily unavailable",
        ) from e
    return {"status": "ok", "version": str(version)}
