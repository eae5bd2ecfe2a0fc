"""User and health API Routes."""

import logging
from datetime import datetime
from typing import List
from fastapi import APIRouter

from proposal_desk.core.database import db_service
from proposal_desk.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.get("/users/assignable", response_model=List[User])
async def assignable_users() -> List[User]:
    """Users an inquiry can be assigned to."""
    users = await db_service.list_assignable_users()
    logger.debug(f"{len(users)} assignable users")
    return users


@router.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    db_healthy = await db_service.health_check()

    return {
        "status": "healthy" if db_healthy else "degraded",
        "database": "connected" if db_healthy else "disconnected",
        "timestamp": datetime.utcnow().isoformat()
    }
