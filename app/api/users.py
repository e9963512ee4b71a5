"""
User API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from app.api.deps import get_current_user
from app.config import settings
from app.database import get_db
from app.models import User
from app.schemas.common import ApiResponse
from app.schemas.progress import WatchHistoryItem
from app.services.watch_progress_service import watch_progress_service

router = APIRouter(prefix="/api/user", tags=["users"])


@router.get("/watch-history", response_model=ApiResponse[List[WatchHistoryItem]])
def get_watch_history(
    limit: int = Query(settings.WATCH_HISTORY_PAGE_SIZE, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the user's watch history across all profiles, newest first"""
    records = watch_progress_service.list_watch_history(db, user.id, limit=limit, offset=offset)
    return ApiResponse(data=[WatchHistoryItem.model_validate(r) for r in records])
