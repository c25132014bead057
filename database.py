from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache, wraps
import logging

from core.exceptions import CarRegistryException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./car_registry.db"
    log_level: str = "INFO"

    # 部署者地址：初始化時成為 owner 與 dev
    owner_address: str = "0x00000000000000000000000000000000000000aa"
    dev_address: str = "0x00000000000000000000000000000000000000aa"

    # 預設全部關閉：paused 不擋操作、approve 不清除、不檢查 race 目標、沒有冷卻
    enforce_pause: bool = False
    clear_approval_on_transfer: bool = False
    require_race_target: bool = False
    race_cooldown_seconds: int = 0
    race_victory_probability: int = 65

    model_config = SettingsConfigDict(env_file=".env")


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()

# SQLite 需要特殊設定：connect_args={"check_same_thread": False}
# 這允許多執行緒存取同一個 SQLite 連線（FastAPI 的多執行緒環境需要）
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    pool_pre_ping=True
)


def enable_sqlite_write_lock(engine):
    """
    讓 SQLite 的每個 transaction 一開始就取得寫入鎖（BEGIN IMMEDIATE）

    SQLite 不支援 SELECT ... FOR UPDATE，而 pysqlite 預設要到第一個
    INSERT / UPDATE 才開始 transaction，兩個請求會讀到同一份舊資料。
    做法參考 SQLAlchemy 文件的 pysqlite serializable recipe：
    - 關掉 pysqlite 自己的 BEGIN（isolation_level = None）
    - 由 SQLAlchemy 在 begin 時送出 BEGIN IMMEDIATE

    第二個寫入者會在 BEGIN 等待（最多 pysqlite timeout 秒），
    效果等同 PostgreSQL 上的 with_registry_lock。
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


if settings.database_url.startswith("sqlite"):
    enable_sqlite_write_lock(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency：提供 Database Session

    使用 yield 確保 session 在請求結束後會被關閉
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def transactional(func):
    """
    Transaction decorator：確保帳本操作的原子性（all-or-nothing）

    使用方式：
        @transactional
        def mint(db: Session, ...):
            car = Car(...)
            db.add(car)
            # 不需要手動 commit，decorator 會處理

    如果函式內發生異常：
        - 自動 rollback，帳本不會留下任何部分修改
        - 異常會被重新拋出（讓 API 層轉成 HTTP 錯誤）

    注意：
        - 第一個參數必須是 db: Session
        - 不要在函式內手動 commit
        - 被裝飾的函式之間不要互相呼叫（內層 commit 會切斷外層 transaction）
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = None
        if args and isinstance(args[0], Session):
            db = args[0]
        elif 'db' in kwargs:
            db = kwargs['db']

        if db is None:
            raise ValueError(
                f"@transactional requires 'db: Session' as first argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except CarRegistryException as e:
            # 前置條件失敗：整筆 revert，不算系統錯誤
            logger.warning(f"Transaction reverted in {func.__name__}: {e}")
            db.rollback()
            raise
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
