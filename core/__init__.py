"""
核心業務邏輯層

這個 package 包含所有會讀寫帳本的邏輯，包括：
- AccessControl：owner / dev / pause
- Ledger：balance、owner 查詢與內部轉移
- Ownership / Minting / Race：各項帳本操作
- Locks：並發控制工具
"""
