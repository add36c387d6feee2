"""Saved search filter route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.database.db import get_db_session
from recruiting.services import saved_filter_service
from recruiting.api.auth_dependencies import require_recruiter
from recruiting.models.schemas import SavedFilterCreate, SavedFilterResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/saved-filters", response_model=SavedFilterResponse, status_code=201)
async def create_saved_filter(
    payload: SavedFilterCreate,
    user: dict = Depends(require_recruiter),
    session: AsyncSession = Depends(get_db_session),
):
    """Save the current search as a named filter."""
    try:
        return await saved_filter_service.save_filter(
            session,
            user["id"],
            payload.name,
            payload.query_params,
            payload.hitting_stats,
            payload.pitching_stats,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error saving filter: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error saving filter")


@router.get("/api/saved-filters", response_model=List[SavedFilterResponse])
async def list_saved_filters(
    user: dict = Depends(require_recruiter),
    session: AsyncSession = Depends(get_db_session),
):
    """The current user's saved filters, newest first."""
    return await saved_filter_service.get_filters(session, user["id"])


@router.delete("/api/saved-filters/{filter_id}")
async def delete_saved_filter(
    filter_id: int,
    user: dict = Depends(require_recruiter),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete one of the current user's saved filters."""
    if not await saved_filter_service.delete_filter(session, user["id"], filter_id):
        raise HTTPException(status_code=404, detail="Filter not found")
    return {"message": "Filter deleted successfully"}
