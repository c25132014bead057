"""
Car Race：兩台車的一次性對決

流程只有一步：擲亂數、判勝負、更新勝敗場數，沒有多階段狀態。

注意（預設行為，可透過設定改變）：
- 不檢查 target 的 owner，也不檢查 target 是否存在（require_race_target）
- 沒有冷卻時間（race_cooldown_seconds）
"""
from sqlalchemy.orm import Session
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from models import Car
from core.locks import with_car_lock
from core.access_control import lock_registry, ensure_not_paused
from core.exceptions import NotTokenOwner, CarNotFound, CarNotReady
from services.address_service import normalize_address
from services.event_service import record_event
from services.randomness import RandomnessSource
from services.race_service import challenger_wins, apply_race_result, RACE_ROLL_RANGE
from database import transactional, get_settings

logger = logging.getLogger(__name__)


class RaceManager:
    """race 管理器"""

    @staticmethod
    @transactional
    def challenge(
        db: Session,
        caller: str,
        car_id: int,
        target_id: int,
        randomness: RandomnessSource,
        now: Optional[datetime] = None
    ) -> dict:
        """
        用自己的車挑戰另一台車

        前置條件：
        1. caller 必須是 car_id 的 owner
        2. （require_race_target）target_id 必須存在
        3. （race_cooldown_seconds > 0）car 必須已經冷卻完畢

        流程：
        1. 用 (時間, caller, nonce) 產生 0-99 的亂數，nonce + 1
        2. roll <= 勝率 -> 挑戰者勝，否則落敗
        3. 更新雙方勝敗場數
        4. 記錄 RACE_RESOLVED 事件

        返回：
            {"car_id", "target_id", "roll", "challenger_won"}

        異常：
            NotTokenOwner: caller 不是 car_id 的 owner
            CarNotFound: target 不存在（只在 require_race_target 時）
            CarNotReady: 冷卻中
            CounterOverflow: 勝敗場數超過 16-bit 上限
        """
        settings = get_settings()
        registry = lock_registry(db)
        ensure_not_paused(registry)
        caller = normalize_address(caller)
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            # naive 時間一律視為 UTC
            now = now.replace(tzinfo=timezone.utc)
        ready_now = now.astimezone(timezone.utc).replace(tzinfo=None)

        # 1. 驗證
        car = with_car_lock(car_id, db).first()
        if not car or car.owner_address != caller:
            raise NotTokenOwner(caller, car_id)

        # 自己挑戰自己時，勝場和敗場都記在同一台車上
        target: Optional[Car] = car if target_id == car_id else with_car_lock(target_id, db).first()
        if target is None and settings.require_race_target:
            raise CarNotFound(target_id)

        if settings.race_cooldown_seconds > 0 and car.ready_at and car.ready_at > ready_now:
            raise CarNotReady(f"Car {car_id} is not ready until {car.ready_at.isoformat()}")

        # 2. 擲亂數
        roll = randomness.next_value(
            RACE_ROLL_RANGE,
            int(now.timestamp()),
            caller,
            registry.race_nonce
        )
        registry.race_nonce += 1
        won = challenger_wins(roll, settings.race_victory_probability)

        # 3. 勝敗場數
        apply_race_result(car, target, won)
        if settings.race_cooldown_seconds > 0:
            car.ready_at = ready_now + timedelta(seconds=settings.race_cooldown_seconds)

        # 4. 事件
        result = {
            "car_id": car_id,
            "target_id": target_id,
            "roll": roll,
            "challenger_won": won
        }
        record_event(db, registry, "RACE_RESOLVED", dict(result, challenger=caller))

        logger.info(
            f"Car {car_id} {'beat' if won else 'lost to'} car {target_id} (roll={roll})"
        )
        return result
