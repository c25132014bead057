"""Database models for the car registry ledger"""

from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime, JSON, Enum as SQLEnum
from datetime import datetime, timezone
import enum

from database import Base


def _utcnow():
    # DateTime 欄位存 naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


ZERO_ADDRESS = "0x" + "0" * 40


class Rarity(str, enum.Enum):
    PLATINUM = "Platinum"
    GOLD = "Gold"
    SILVER = "Silver"
    BRONZE = "Bronze"


class Registry(Base):
    """存取控制與全域計數器（只有一列，id = 1）"""
    __tablename__ = 'registry'

    id = Column(Integer, primary_key=True)
    owner_address = Column(String(42), nullable=False)  # 最上層 owner
    dev_address = Column(String(42), nullable=False)  # 營運用 dev
    paused = Column(Boolean, nullable=False, default=False)

    creation_counter = Column(Integer, nullable=False, default=0)  # mint 亂數種子
    race_nonce = Column(Integer, nullable=False, default=0)  # race 亂數種子
    block_hash = Column(String(66), nullable=False)  # 每筆事件推進一次

    created_at = Column(DateTime, default=_utcnow)


class Car(Base):
    """車輛 token；id 即為在帳本中的位置"""
    __tablename__ = 'cars'

    id = Column(Integer, primary_key=True, autoincrement=False)
    win_count = Column(Integer, nullable=False, default=0)
    loss_count = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    rarity = Column(SQLEnum(Rarity), nullable=False)

    owner_address = Column(String(42), nullable=False, index=True)  # token -> owner
    approved_address = Column(String(42), nullable=False, default=ZERO_ADDRESS)  # token -> approved

    ready_at = Column(DateTime, nullable=True)  # 冷卻結束時間
    created_at = Column(DateTime, default=_utcnow)


class OwnerBalance(Base):
    """owner -> 持有數量；沒有資料列時視為 0"""
    __tablename__ = 'owner_balances'

    address = Column(String(42), primary_key=True)
    count = Column(BigInteger, nullable=False, default=0)


class EventLog(Base):
    """給鏈下觀察者的事件紀錄（append-only）"""
    __tablename__ = 'event_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(String(50), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    block_hash = Column(String(66), nullable=False)
    created_at = Column(DateTime, default=_utcnow)
