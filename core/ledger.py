"""
Car Ledger：token 儲存與 owner / balance 對應

帳本由三個部分組成：
- cars：依 id 排列的車輛紀錄（append-only），內含 owner 與 approved 地址
- owner_balances：owner -> 持有數量
- registry：全域計數器

不變量：
- 每台已 mint 的車都恰好有一個 owner
- 任一地址的 balance == owner 為該地址的車輛數
- 所有 balance 加總 == 已 mint 的車輛總數
"""
from sqlalchemy.orm import Session
from typing import List
import logging

from models import Car, OwnerBalance, Registry, ZERO_ADDRESS
from core.exceptions import (
    CarNotFound,
    BalanceUnderflow,
    BalanceOverflow,
    LedgerInconsistency
)
from services.address_service import normalize_address
from services.event_service import record_event
from database import get_settings

logger = logging.getLogger(__name__)

MAX_BALANCE = 2 ** 63 - 1


class CarLedger:
    """帳本讀取與內部轉移"""

    @staticmethod
    def balance_of(db: Session, owner: str) -> int:
        """
        查詢持有數量

        不存在的地址返回 0，永遠不會失敗（格式錯誤除外）
        """
        owner = normalize_address(owner)
        row = db.query(OwnerBalance).filter(OwnerBalance.address == owner).first()
        return row.count if row else 0

    @staticmethod
    def owner_of(db: Session, car_id: int) -> str:
        """
        查詢 token 的 owner

        從未 mint 過的 id 返回零地址，不拋異常
        """
        car = db.query(Car).filter(Car.id == car_id).first()
        return car.owner_address if car else ZERO_ADDRESS

    @staticmethod
    def get_car(db: Session, car_id: int) -> Car:
        car = db.query(Car).filter(Car.id == car_id).first()
        if not car:
            raise CarNotFound(car_id)
        return car

    @staticmethod
    def total_supply(db: Session) -> int:
        return db.query(Car).count()

    @staticmethod
    def get_cars_by_owner(db: Session, owner: str) -> List[int]:
        """
        列出某地址持有的所有車輛 id（依 id 排序）

        掃過整個帳本，收集 owner 相符的 id。
        結果長度必須等於 balance_of(owner)，不一致代表帳本壞掉，
        直接拋出 LedgerInconsistency 而不是回傳截斷的結果。
        """
        owner = normalize_address(owner)
        expected = CarLedger.balance_of(db, owner)

        result = []
        for car_id, car_owner in db.query(Car.id, Car.owner_address).order_by(Car.id):
            if car_owner == owner:
                result.append(car_id)

        if len(result) != expected:
            logger.error(
                f"Ledger inconsistency for {owner}: balance={expected}, scanned={len(result)}"
            )
            raise LedgerInconsistency(
                f"Balance of {owner} is {expected} but {len(result)} cars are recorded"
            )
        return result

    @staticmethod
    def adjust_balance(db: Session, address: str, delta: int) -> int:
        """
        調整持有數量（checked arithmetic）

        異常：
            BalanceUnderflow: 結果小於 0
            BalanceOverflow: 結果超過 MAX_BALANCE

        注意：
            - 不 commit，交由外層 @transactional 處理
        """
        row = db.query(OwnerBalance).filter(OwnerBalance.address == address).first()
        current = row.count if row else 0
        updated = current + delta

        if updated < 0:
            raise BalanceUnderflow(f"Balance of {address} would drop below zero")
        if updated > MAX_BALANCE:
            raise BalanceOverflow(f"Balance of {address} would exceed {MAX_BALANCE}")

        if row is None:
            row = OwnerBalance(address=address, count=updated)
            db.add(row)
            db.flush()
        else:
            row.count = updated
        return updated

    @staticmethod
    def move_token(db: Session, registry: Registry, from_address: str, to_address: str, car: Car) -> None:
        """
        內部轉移：transfer 與 takeOwnership 共用

        流程：
        1. 寄件者 balance - 1，收件者 balance + 1（兩者都先檢查）
        2. 改寫 owner
        3. 記錄 TRANSFER 事件

        注意：
            - 呼叫者必須已經持有 Registry 鎖並完成權限檢查
            - 不 commit，交由外層 @transactional 處理
        """
        CarLedger.adjust_balance(db, from_address, -1)
        CarLedger.adjust_balance(db, to_address, 1)

        car.owner_address = to_address
        if get_settings().clear_approval_on_transfer:
            car.approved_address = ZERO_ADDRESS

        record_event(db, registry, "TRANSFER", {
            "from": from_address,
            "to": to_address,
            "token_id": car.id
        })

        logger.info(f"Car {car.id} transferred {from_address} -> {to_address}")
