"""
比賽服務：勝負判定與勝敗場數更新

純計算邏輯，不負責鎖定與 commit
"""
from typing import Optional

from core.exceptions import CounterOverflow
from models import Car

RACE_ROLL_RANGE = 100

# 勝敗場數是 16-bit
MAX_RACE_COUNTER = 2 ** 16 - 1


def challenger_wins(roll: int, victory_probability: int) -> bool:
    """
    判斷挑戰者是否獲勝

    roll <= victory_probability 即為挑戰者獲勝，
    所以 victory_probability=65 時實際勝率是 66/100
    """
    return roll <= victory_probability


def _increment(value: int, field: str, car_id: int) -> int:
    if value >= MAX_RACE_COUNTER:
        raise CounterOverflow(f"{field} of car {car_id} would exceed {MAX_RACE_COUNTER}")
    return value + 1


def apply_race_result(challenger: Car, target: Optional[Car], won: bool) -> None:
    """
    更新雙方勝敗場數

    target 為 None 表示目標車輛不存在（預設不檢查），
    此時只更新挑戰者。先全部算完再寫入，避免 overflow 時留下半套修改。
    """
    if won:
        new_challenger = ("win_count", _increment(challenger.win_count, "win_count", challenger.id))
        new_target = ("loss_count", _increment(target.loss_count, "loss_count", target.id)) if target else None
    else:
        new_challenger = ("loss_count", _increment(challenger.loss_count, "loss_count", challenger.id))
        new_target = ("win_count", _increment(target.win_count, "win_count", target.id)) if target else None

    setattr(challenger, *new_challenger)
    if target is not None:
        setattr(target, *new_target)
