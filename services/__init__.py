"""
服務層

這個 package 包含純計算邏輯，不負責鎖定與 commit：
- AddressService：地址驗證
- Randomness：亂數來源（可替換）
- RarityService / RaceService：稀有度與勝負規則
- EventService / HistoryService：事件紀錄與查詢
"""
