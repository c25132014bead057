"""
Event history service.

Read side of the event log, so off-chain observers can follow transfers,
approvals and new cars without polling every token.
"""
from typing import List, Dict, Any, Optional

from sqlalchemy.orm import Session

from models import EventLog


def get_event_history(
    db: Session,
    event_type: Optional[str] = None,
    after_id: int = 0,
    limit: int = 100
) -> List[Dict[str, Any]]:
    """
    Return events in the order they were recorded.

    ``after_id`` lets a client resume from the last event it has seen.
    """
    query = db.query(EventLog).filter(EventLog.id > after_id)
    if event_type:
        query = query.filter(EventLog.event_type == event_type)

    rows = query.order_by(EventLog.id).limit(limit).all()

    history: List[Dict[str, Any]] = []
    for event in rows:
        history.append({
            "id": event.id,
            "event_type": event.event_type,
            "data": event.data,
            "block_hash": event.block_hash,
            "created_at": event.created_at,
        })

    return history
