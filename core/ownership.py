"""
Car Ownership：ERC721 子集的寫入操作

職責：
1. transfer：owner 直接轉給別人
2. approve：owner 指定一個 delegate
3. take_ownership：delegate 把 token 拿走

權限檢查一律是「呼叫者 == 帳本上記錄的地址」，沒有授權清單。
"""
from sqlalchemy.orm import Session
import logging

from models import Car
from core.locks import with_car_lock
from core.ledger import CarLedger
from core.access_control import lock_registry, ensure_not_paused
from core.exceptions import NotTokenOwner, NotApproved
from services.address_service import normalize_address
from services.event_service import record_event
from database import transactional

logger = logging.getLogger(__name__)


def _lock_owned_car(db: Session, caller: str, car_id: int) -> Car:
    """
    鎖定車輛並確認 caller 是 owner

    不存在的 id 視為 owner 是零地址，一樣回報 NotTokenOwner
    """
    car = with_car_lock(car_id, db).first()
    if not car or car.owner_address != caller:
        raise NotTokenOwner(caller, car_id)
    return car


class OwnershipManager:
    """token 轉移與授權"""

    @staticmethod
    @transactional
    def transfer(db: Session, caller: str, to: str, car_id: int) -> Car:
        """
        轉移 token

        前置條件：
        1. caller 必須是 owner_of(car_id)
        2. to 必須是合法地址（零地址也接受）

        異常：
            NotTokenOwner: caller 不是 owner
            BalanceUnderflow / BalanceOverflow: balance 調整失敗
        """
        registry = lock_registry(db)
        ensure_not_paused(registry)
        caller = normalize_address(caller)
        to = normalize_address(to)

        car = _lock_owned_car(db, caller, car_id)
        CarLedger.move_token(db, registry, caller, to, car)
        return car

    @staticmethod
    @transactional
    def approve(db: Session, caller: str, to: str, car_id: int) -> Car:
        """
        指定 delegate（覆蓋之前的 approve）

        事件：
            APPROVAL
        """
        registry = lock_registry(db)
        ensure_not_paused(registry)
        caller = normalize_address(caller)
        to = normalize_address(to)

        car = _lock_owned_car(db, caller, car_id)
        car.approved_address = to
        record_event(db, registry, "APPROVAL", {
            "owner": caller,
            "approved": to,
            "token_id": car_id
        })

        logger.info(f"Car {car_id} approved for {to} by {caller}")
        return car

    @staticmethod
    @transactional
    def take_ownership(db: Session, caller: str, car_id: int) -> Car:
        """
        delegate 取得 token

        前置條件：
            caller 必須等於帳本上記錄的 approved 地址

        注意：
            - 轉移後 approve 不會清除（除非開啟 clear_approval_on_transfer），
              舊的 approve 會一直留著直到被覆蓋
        """
        registry = lock_registry(db)
        ensure_not_paused(registry)
        caller = normalize_address(caller)

        car = with_car_lock(car_id, db).first()
        if not car or car.approved_address != caller:
            raise NotApproved(caller, car_id)

        CarLedger.move_token(db, registry, car.owner_address, caller, car)
        return car
