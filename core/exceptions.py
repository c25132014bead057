"""
自定義異常類別

所有帳本操作都是 reject-and-revert：前置條件不符就拋出這裡的異常，
@transactional 會 rollback，API 層再統一轉成 HTTP 錯誤。
"""


class CarRegistryException(Exception):
    """所有帳本異常的基類"""
    pass


# ============ 地址 / 權限 ============

class InvalidAddress(CarRegistryException):
    """地址格式錯誤，或不允許使用零地址"""
    def __init__(self, address, reason="malformed address"):
        self.address = address
        super().__init__(f"Invalid address {address!r}: {reason}")


class NotContractOwner(CarRegistryException):
    """呼叫者不是最上層 owner"""
    def __init__(self, caller):
        self.caller = caller
        super().__init__(f"{caller} is not the registry owner")


class NotDeveloper(CarRegistryException):
    """呼叫者不是 devAddress"""
    def __init__(self, caller):
        self.caller = caller
        super().__init__(f"{caller} is not the developer address")


class RegistryNotInitialized(CarRegistryException):
    """Registry 尚未初始化（沒有 genesis row）"""
    pass


# ============ Pause 相關 ============

class AlreadyPaused(CarRegistryException):
    pass


class NotPaused(CarRegistryException):
    pass


class RegistryPaused(CarRegistryException):
    """暫停中（只有 enforce_pause 開啟時才會出現）"""
    pass


# ============ Token 相關 ============

class CarNotFound(CarRegistryException):
    """車輛不存在"""
    def __init__(self, car_id):
        self.car_id = car_id
        super().__init__(f"Car {car_id} not found")


class NotTokenOwner(CarRegistryException):
    """呼叫者不是該 token 的擁有者"""
    def __init__(self, caller, car_id):
        self.caller = caller
        self.car_id = car_id
        super().__init__(f"{caller} does not own car {car_id}")


class NotApproved(CarRegistryException):
    """呼叫者不是該 token 的 approved delegate"""
    def __init__(self, caller, car_id):
        self.caller = caller
        self.car_id = car_id
        super().__init__(f"{caller} is not approved for car {car_id}")


class CarNotReady(CarRegistryException):
    """冷卻時間未到（race_cooldown_seconds > 0 時）"""
    pass


# ============ 算術 / 一致性 ============

class BalanceUnderflow(CarRegistryException):
    pass


class BalanceOverflow(CarRegistryException):
    pass


class CounterOverflow(CarRegistryException):
    """勝敗場數超過 16-bit 上限"""
    pass


class LedgerInconsistency(CarRegistryException):
    """owner mapping 與 balance 不一致（理論上不會發生）"""
    pass
