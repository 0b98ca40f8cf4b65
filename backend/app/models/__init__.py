"""
数据库模型
"""
from app.models.record import Record
from app.models.player_stats import PlayerStats
from app.models.player import Player
from app.models.setting import Setting

__all__ = [
    "Record",
    "PlayerStats",
    "Player",
    "Setting",
]
