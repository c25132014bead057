"""
Owner API Endpoints（唯讀）

職責：
1. balanceOf
2. getCarsByOwner
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import BalanceResponse, OwnerCarsResponse
from core.ledger import CarLedger
from core.exceptions import CarRegistryException, LedgerInconsistency
from services.address_service import normalize_address
from api.errors import to_http_exception

router = APIRouter(prefix="/api/owners", tags=["owners"])
logger = logging.getLogger(__name__)


@router.get("/{address}/balance", response_model=BalanceResponse)
def balance_of(address: str, db: Session = Depends(get_db)):
    try:
        return BalanceResponse(
            address=normalize_address(address),
            balance=CarLedger.balance_of(db, address)
        )
    except CarRegistryException as e:
        raise to_http_exception(e)


@router.get("/{address}/cars", response_model=OwnerCarsResponse)
def get_cars_by_owner(address: str, db: Session = Depends(get_db)):
    try:
        return OwnerCarsResponse(
            address=normalize_address(address),
            car_ids=CarLedger.get_cars_by_owner(db, address)
        )
    except LedgerInconsistency as e:
        logger.error(f"Ledger inconsistency while listing cars of {address}: {e}")
        raise to_http_exception(e)
    except CarRegistryException as e:
        raise to_http_exception(e)
