"""
共用的 FastAPI dependencies
"""
from fastapi import Header


def get_caller(x_caller_address: str = Header(..., alias="X-Caller-Address")) -> str:
    """
    呼叫者身分：以錢包地址取代 token

    格式驗證交給各個 Manager（normalize_address），錯誤會轉成 400
    """
    return x_caller_address
