"""
Access Control：兩層權限 + pause

角色：
1. owner：最上層管理者，只能轉移 owner 權限
2. dev：營運管理者，可以 pause / unpause、更換 dev

注意：
- paused 預設不會擋任何帳本操作
- 設定 enforce_pause=True 之後，transfer / approve / takeOwnership /
  mint / challenge 在暫停期間都會失敗
"""
from sqlalchemy.orm import Session
import logging

from models import Registry
from core.locks import with_registry_lock, REGISTRY_ID
from core.exceptions import (
    NotContractOwner,
    NotDeveloper,
    AlreadyPaused,
    NotPaused,
    RegistryPaused,
    RegistryNotInitialized
)
from services.address_service import normalize_address
from services.event_service import record_event, GENESIS_BLOCK_HASH
from database import transactional, get_settings

logger = logging.getLogger(__name__)


def lock_registry(db: Session) -> Registry:
    """取得並鎖定 Registry；尚未初始化就拋出 RegistryNotInitialized"""
    registry = with_registry_lock(db).first()
    if not registry:
        raise RegistryNotInitialized("Registry has not been initialized")
    return registry


def ensure_not_paused(registry: Registry) -> None:
    """enforce_pause 開啟且目前暫停中 -> RegistryPaused"""
    if get_settings().enforce_pause and registry.paused:
        raise RegistryPaused("Registry is paused")


class AccessControlManager:
    """owner / dev / paused 管理器"""

    @staticmethod
    @transactional
    def initialize(db: Session, owner_address: str, dev_address: str) -> Registry:
        """
        建立 Registry（genesis），相當於部署合約

        已經初始化過就直接返回既有的 Registry（冪等）

        參數：
            db: SQLAlchemy Session
            owner_address: 部署者 / owner
            dev_address: 初始 dev
        """
        registry = with_registry_lock(db).first()
        if registry:
            return registry

        registry = Registry(
            id=REGISTRY_ID,
            owner_address=normalize_address(owner_address, allow_zero=False),
            dev_address=normalize_address(dev_address, allow_zero=False),
            paused=False,
            creation_counter=0,
            race_nonce=0,
            block_hash=GENESIS_BLOCK_HASH
        )
        db.add(registry)
        db.flush()

        logger.info(
            f"Initialized registry (owner={registry.owner_address}, dev={registry.dev_address})"
        )
        return registry

    @staticmethod
    def get_state(db: Session) -> Registry:
        """讀取 Registry（不鎖定）"""
        registry = db.query(Registry).filter(Registry.id == REGISTRY_ID).first()
        if not registry:
            raise RegistryNotInitialized("Registry has not been initialized")
        return registry

    @staticmethod
    @transactional
    def transfer_ownership(db: Session, caller: str, new_owner: str) -> Registry:
        """
        轉移最上層 owner 權限

        前置條件：
        1. caller 必須是目前的 owner
        2. new_owner 不能是零地址

        事件：
            OWNERSHIP_TRANSFERRED
        """
        registry = lock_registry(db)
        caller = normalize_address(caller)
        new_owner = normalize_address(new_owner, allow_zero=False)

        if caller != registry.owner_address:
            raise NotContractOwner(caller)

        previous = registry.owner_address
        registry.owner_address = new_owner
        record_event(db, registry, "OWNERSHIP_TRANSFERRED", {
            "previous_owner": previous,
            "new_owner": new_owner
        })

        logger.info(f"Registry ownership transferred {previous} -> {new_owner}")
        return registry

    @staticmethod
    @transactional
    def set_dev(db: Session, caller: str, new_dev: str) -> Registry:
        """
        更換 dev 地址

        前置條件：
        1. caller 必須是目前的 dev
        2. new_dev 不能是零地址

        記錄 DEV_CHANGED 事件
        """
        registry = lock_registry(db)
        caller = normalize_address(caller)
        new_dev = normalize_address(new_dev, allow_zero=False)

        if caller != registry.dev_address:
            raise NotDeveloper(caller)

        previous = registry.dev_address
        registry.dev_address = new_dev
        record_event(db, registry, "DEV_CHANGED", {
            "previous_dev": previous,
            "new_dev": new_dev
        })

        logger.info(f"Developer address changed {previous} -> {new_dev}")
        return registry

    @staticmethod
    @transactional
    def pause(db: Session, caller: str) -> Registry:
        """
        暫停

        異常：
            NotDeveloper: caller 不是 dev
            AlreadyPaused: 已經是暫停狀態
        """
        registry = lock_registry(db)
        caller = normalize_address(caller)

        if caller != registry.dev_address:
            raise NotDeveloper(caller)
        if registry.paused:
            raise AlreadyPaused("Registry is already paused")

        registry.paused = True
        record_event(db, registry, "PAUSED", {"by": caller})

        logger.info(f"Registry paused by {caller}")
        return registry

    @staticmethod
    @transactional
    def unpause(db: Session, caller: str) -> Registry:
        """
        解除暫停

        異常：
            NotDeveloper: caller 不是 dev
            NotPaused: 目前沒有暫停
        """
        registry = lock_registry(db)
        caller = normalize_address(caller)

        if caller != registry.dev_address:
            raise NotDeveloper(caller)
        if not registry.paused:
            raise NotPaused("Registry is not paused")

        registry.paused = False
        record_event(db, registry, "UNPAUSED", {"by": caller})

        logger.info(f"Registry unpaused by {caller}")
        return registry
