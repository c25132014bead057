"""
業務異常 -> HTTPException

各 endpoint 捕捉 CarRegistryException 之後呼叫 to_http_exception，
狀態碼集中在這裡維護
"""
from fastapi import HTTPException

from core import exceptions as exc

# 依序比對，子類別要放在前面
ERROR_STATUS = [
    (exc.InvalidAddress, 400),
    (exc.NotContractOwner, 403),
    (exc.NotDeveloper, 403),
    (exc.NotTokenOwner, 403),
    (exc.NotApproved, 403),
    (exc.CarNotFound, 404),
    (exc.AlreadyPaused, 409),
    (exc.NotPaused, 409),
    (exc.RegistryPaused, 409),
    (exc.CarNotReady, 409),
    (exc.BalanceUnderflow, 409),
    (exc.BalanceOverflow, 409),
    (exc.CounterOverflow, 409),
    (exc.RegistryNotInitialized, 503),
    (exc.LedgerInconsistency, 500),
]


def to_http_exception(error: exc.CarRegistryException) -> HTTPException:
    """
    轉成 HTTPException

    未列在 ERROR_STATUS 的業務異常一律視為 400
    """
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))
