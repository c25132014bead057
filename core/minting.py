"""
Car Minting：建立新車並決定稀有度

任何人都可以 mint，沒有權限限制。

亂數來源：前一個 block hash + creation counter，兩者都是公開資料，
所以結果可以被預測。這是刻意保留的行為，不是要修的 bug。
"""
from sqlalchemy.orm import Session
import logging

from models import Car
from core.ledger import CarLedger
from core.access_control import lock_registry, ensure_not_paused
from services.address_service import normalize_address
from services.event_service import record_event
from services.randomness import RandomnessSource
from services.rarity_service import rarity_for_roll, RARITY_ROLL_RANGE
from database import transactional

logger = logging.getLogger(__name__)


class MintingManager:
    """mint 管理器"""

    @staticmethod
    @transactional
    def choose_rarity_car(db: Session, caller: str, randomness: RandomnessSource) -> Car:
        """
        mint 一台新車給 caller

        流程：
        1. 用 (前一個 block hash, creation counter) 產生 0-99 的亂數
        2. 亂數對應稀有度
        3. creation counter + 1
        4. 新增 Car（id = 目前總數，level 1，勝敗場數 0）
        5. caller balance + 1
        6. 記錄 NEW_CAR 事件

        參數：
            db: SQLAlchemy Session
            caller: mint 的地址，成為新車的 owner
            randomness: 亂數來源（測試時可替換）

        返回：
            新建立的 Car
        """
        registry = lock_registry(db)
        ensure_not_paused(registry)
        caller = normalize_address(caller)

        # 1-2. 決定稀有度
        roll = randomness.next_value(
            RARITY_ROLL_RANGE,
            registry.block_hash,
            registry.creation_counter
        )
        rarity = rarity_for_roll(roll)

        # 3. 計數器
        registry.creation_counter += 1

        # 4. 新車，id 依序遞增
        car_id = CarLedger.total_supply(db)
        car = Car(
            id=car_id,
            win_count=0,
            loss_count=0,
            level=1,
            rarity=rarity,
            owner_address=caller
        )
        db.add(car)

        # 5. balance
        CarLedger.adjust_balance(db, caller, 1)

        # 6. 事件
        record_event(db, registry, "NEW_CAR", {
            "owner": caller,
            "token_id": car_id,
            "rarity": rarity.value,
            "roll": roll
        })

        db.flush()
        logger.info(f"Minted car {car_id} ({rarity.value}, roll={roll}) for {caller}")
        return car
