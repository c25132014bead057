"""
Event API Endpoints

鏈下觀察者用短輪詢取得新事件：帶上最後看到的 event id（after_id）即可續讀
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas import EventResponse
from services.history_service import get_event_history

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("", response_model=List[EventResponse])
def list_events(
    event_type: Optional[str] = Query(None),
    after_id: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    return get_event_history(db, event_type=event_type, after_id=after_id, limit=limit)
