"""Request / response models for the car registry API"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import Rarity


# ============ Registry ============

class RegistryResponse(BaseModel):
    owner_address: str
    dev_address: str
    paused: bool
    creation_counter: int
    race_nonce: int
    block_hash: str
    total_supply: int

    model_config = ConfigDict(from_attributes=True)


class AddressPayload(BaseModel):
    address: str = Field(..., description="0x-prefixed 20-byte hex address")


# ============ Cars ============

class CarResponse(BaseModel):
    id: int
    owner_address: str
    approved_address: str
    rarity: Rarity
    level: int
    win_count: int
    loss_count: int
    ready_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TransferRequest(BaseModel):
    to: str


class ApproveRequest(BaseModel):
    to: str


class ChallengeRequest(BaseModel):
    target_id: int = Field(..., ge=0)


class ChallengeResponse(BaseModel):
    car_id: int
    target_id: int
    roll: int
    challenger_won: bool


class OwnerResponse(BaseModel):
    car_id: int
    owner_address: str


# ============ Owners ============

class BalanceResponse(BaseModel):
    address: str
    balance: int


class OwnerCarsResponse(BaseModel):
    address: str
    car_ids: List[int]


# ============ Events ============

class EventResponse(BaseModel):
    id: int
    event_type: str
    data: Dict[str, Any]
    block_hash: str
    created_at: Optional[datetime] = None
