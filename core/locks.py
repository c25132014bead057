"""
並發控制工具

所有會修改帳本的操作都必須先鎖定唯一的 Registry row，
等同於單一寫入者：兩筆 mint 或兩場 race 不會交錯執行。

主要使用 PostgreSQL 的 SELECT ... FOR UPDATE 來實現悲觀鎖（Pessimistic Locking）；
SQLite 不支援 FOR UPDATE；database.enable_sqlite_write_lock 讓每個交易
以 BEGIN IMMEDIATE 開始，第一個寫入者拿到寫入鎖後，其他交易會等待。
"""
from sqlalchemy.orm import Session, Query

from models import Registry, Car

REGISTRY_ID = 1


def with_registry_lock(db: Session) -> Query:
    """
    鎖定 Registry（全域寫入鎖）

    使用場景：
    - 任何修改帳本的操作（transfer、mint、race、pause ...）
    - 必須是 transaction 內第一個鎖，避免 deadlock

    範例：
        registry = with_registry_lock(db).first()
        if not registry:
            raise RegistryNotInitialized()

    返回：
        Query object（需要呼叫 .first() 來取得結果）
    """
    return db.query(Registry).filter(
        Registry.id == REGISTRY_ID
    ).with_for_update(nowait=False)


def with_car_lock(car_id: int, db: Session) -> Query:
    """
    鎖定一台車（行級鎖）

    注意：
        - 必須先取得 Registry 鎖
    """
    return db.query(Car).filter(
        Car.id == car_id
    ).with_for_update(nowait=False)
