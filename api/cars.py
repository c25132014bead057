"""
Car API Endpoints

職責：
1. mint 新車
2. 查詢車輛與 owner
3. transfer / approve / takeOwnership
4. challenge（race）

錯誤處理：CarRegistryException 由 to_http_exception 轉成對應的狀態碼，
其他異常記錄 log 後回 500
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    CarResponse,
    OwnerResponse,
    TransferRequest,
    ApproveRequest,
    ChallengeRequest,
    ChallengeResponse
)
from core.ledger import CarLedger
from core.ownership import OwnershipManager
from core.minting import MintingManager
from core.race import RaceManager
from core.exceptions import CarRegistryException
from services.randomness import RandomnessSource, get_randomness
from api.dependencies import get_caller
from api.errors import to_http_exception

router = APIRouter(prefix="/api/cars", tags=["cars"])
logger = logging.getLogger(__name__)


@router.post("", response_model=CarResponse, status_code=201)
def mint_car(
    caller: str = Depends(get_caller),
    randomness: RandomnessSource = Depends(get_randomness),
    db: Session = Depends(get_db)
):
    """
    mint 一台新車（任何人都可以呼叫）

    稀有度由亂數決定，新車的 owner 是 caller
    """
    try:
        return MintingManager.choose_rarity_car(db, caller, randomness)
    except CarRegistryException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to mint car: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{car_id}", response_model=CarResponse)
def get_car(car_id: int, db: Session = Depends(get_db)):
    try:
        return CarLedger.get_car(db, car_id)
    except CarRegistryException as e:
        raise to_http_exception(e)


@router.get("/{car_id}/owner", response_model=OwnerResponse)
def owner_of(car_id: int, db: Session = Depends(get_db)):
    """
    查詢 owner

    從未 mint 過的 id 返回零地址，而不是 404
    """
    return OwnerResponse(car_id=car_id, owner_address=CarLedger.owner_of(db, car_id))


@router.post("/{car_id}/transfer", response_model=CarResponse)
def transfer(
    car_id: int,
    payload: TransferRequest,
    caller: str = Depends(get_caller),
    db: Session = Depends(get_db)
):
    try:
        return OwnershipManager.transfer(db, caller, payload.to, car_id)
    except CarRegistryException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to transfer car {car_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{car_id}/approve", response_model=CarResponse)
def approve(
    car_id: int,
    payload: ApproveRequest,
    caller: str = Depends(get_caller),
    db: Session = Depends(get_db)
):
    try:
        return OwnershipManager.approve(db, caller, payload.to, car_id)
    except CarRegistryException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to approve car {car_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{car_id}/take", response_model=CarResponse)
def take_ownership(
    car_id: int,
    caller: str = Depends(get_caller),
    db: Session = Depends(get_db)
):
    """approved delegate 取得 token"""
    try:
        return OwnershipManager.take_ownership(db, caller, car_id)
    except CarRegistryException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to take car {car_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{car_id}/challenge", response_model=ChallengeResponse)
def challenge(
    car_id: int,
    payload: ChallengeRequest,
    caller: str = Depends(get_caller),
    randomness: RandomnessSource = Depends(get_randomness),
    db: Session = Depends(get_db)
):
    """
    用自己的車挑戰另一台車

    只會更新雙方勝敗場數，沒有專屬事件以外的副作用
    """
    try:
        result = RaceManager.challenge(db, caller, car_id, payload.target_id, randomness)
        return ChallengeResponse(**result)
    except CarRegistryException as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Failed to resolve challenge for car {car_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
