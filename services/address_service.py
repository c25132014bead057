"""
地址服務：驗證與正規化錢包地址

純計算邏輯，不涉及狀態轉換
"""
import re

from core.exceptions import InvalidAddress
from models import ZERO_ADDRESS

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(address: str, allow_zero: bool = True) -> str:
    """
    驗證地址格式並轉成小寫

    參數：
        address: 0x 開頭的 40 位十六進位字串
        allow_zero: 是否接受零地址

    返回：
        小寫地址

    異常：
        InvalidAddress: 格式錯誤，或 allow_zero=False 時傳入零地址
    """
    if not isinstance(address, str) or not _ADDRESS_RE.match(address):
        raise InvalidAddress(address)

    address = address.lower()
    if not allow_zero and address == ZERO_ADDRESS:
        raise InvalidAddress(address, "zero address not allowed")
    return address


def is_zero_address(address: str) -> bool:
    return address.lower() == ZERO_ADDRESS
