"""
事件服務：記錄給鏈下觀察者的事件，並推進 block hash

每記錄一筆事件，registry.block_hash 就會以
sha3(前一個 hash | 事件類型 | 事件內容) 往前推進一次。
mint 用「前一個 block hash」當亂數種子，這個值是公開的、可預測的。
"""
import hashlib
import json
from typing import Any, Dict

from sqlalchemy.orm import Session

from models import EventLog, Registry

GENESIS_BLOCK_HASH = "0x" + "0" * 64


def next_block_hash(previous: str, event_type: str, data: Dict[str, Any]) -> str:
    payload = f"{previous}|{event_type}|{json.dumps(data, sort_keys=True)}"
    return "0x" + hashlib.sha3_256(payload.encode("utf-8")).hexdigest()


def record_event(db: Session, registry: Registry, event_type: str, data: Dict[str, Any]) -> EventLog:
    """
    新增一筆事件並推進 block hash

    參數：
        db: SQLAlchemy Session
        registry: 已鎖定的 Registry
        event_type: 例如 "TRANSFER"、"NEW_CAR"
        data: 事件內容（必須可以 JSON 序列化）

    注意：
        - 不 commit，交由外層 @transactional 處理
    """
    registry.block_hash = next_block_hash(registry.block_hash, event_type, data)
    event = EventLog(
        event_type=event_type,
        data=data,
        block_hash=registry.block_hash
    )
    db.add(event)
    return event
