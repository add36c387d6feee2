"""Admin route handlers."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from recruiting.api.routes import limiter
from recruiting.database.db import get_db_session
from recruiting.services import csv_import_service
from recruiting.api.auth_dependencies import require_admin
from recruiting.models.schemas import CsvImportResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/admin/csv-import", response_model=CsvImportResponse)
@limiter.limit("5/minute")
async def import_csv(
    request: Request,
    file: UploadFile = File(...),
    user: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Import players and season stats from an uploaded stats export."""
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="No CSV file uploaded")

    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = raw.decode("latin-1")

    try:
        results = await csv_import_service.import_players_from_csv(session, text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"CSV import failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="CSV import failed")

    logger.info(f"CSV import by user {user['id']}: {file.filename}")
    return {"message": "CSV import completed", "results": results}
