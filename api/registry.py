"""
Registry API Endpoints

職責：
1. 查詢 owner / dev / paused 狀態
2. 轉移 owner、更換 dev
3. pause / unpause
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import Registry
from schemas import RegistryResponse, AddressPayload
from core.access_control import AccessControlManager
from core.ledger import CarLedger
from core.exceptions import CarRegistryException
from api.dependencies import get_caller
from api.errors import to_http_exception

router = APIRouter(prefix="/api/registry", tags=["registry"])
logger = logging.getLogger(__name__)


def _to_response(db: Session, registry: Registry) -> RegistryResponse:
    return RegistryResponse(
        owner_address=registry.owner_address,
        dev_address=registry.dev_address,
        paused=registry.paused,
        creation_counter=registry.creation_counter,
        race_nonce=registry.race_nonce,
        block_hash=registry.block_hash,
        total_supply=CarLedger.total_supply(db)
    )


@router.get("", response_model=RegistryResponse)
def get_registry(db: Session = Depends(get_db)):
    """取得存取控制狀態與全域計數器（公開）"""
    try:
        return _to_response(db, AccessControlManager.get_state(db))
    except CarRegistryException as e:
        raise to_http_exception(e)


@router.post("/ownership", response_model=RegistryResponse)
def transfer_ownership(
    payload: AddressPayload,
    caller: str = Depends(get_caller),
    db: Session = Depends(get_db)
):
    """轉移最上層 owner（只有 owner 可以呼叫）"""
    try:
        registry = AccessControlManager.transfer_ownership(db, caller, payload.address)
        return _to_response(db, registry)
    except CarRegistryException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to transfer ownership: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/dev", response_model=RegistryResponse)
def set_dev(
    payload: AddressPayload,
    caller: str = Depends(get_caller),
    db: Session = Depends(get_db)
):
    """更換 dev（只有 dev 可以呼叫）"""
    try:
        registry = AccessControlManager.set_dev(db, caller, payload.address)
        return _to_response(db, registry)
    except CarRegistryException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to set dev: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/pause", response_model=RegistryResponse)
def pause(caller: str = Depends(get_caller), db: Session = Depends(get_db)):
    try:
        return _to_response(db, AccessControlManager.pause(db, caller))
    except CarRegistryException as e:
        raise to_http_exception(e)


@router.post("/unpause", response_model=RegistryResponse)
def unpause(caller: str = Depends(get_caller), db: Session = Depends(get_db)):
    try:
        return _to_response(db, AccessControlManager.unpause(db, caller))
    except CarRegistryException as e:
        raise to_http_exception(e)
