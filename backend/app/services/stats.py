"""
点数收支与统计累加
"""
from typing import Optional
from app.schemas.stats import PlayerStatsResponse


def calculate_point_balance(initial_points: int, final_points: int, add_ons: int) -> int:
    """点数收支 = 最终持点 - 初期持点 × (追加次数 + 1)"""
    return final_points - initial_points * (add_ons + 1)


def accumulate(
    player_name: str,
    previous: Optional[PlayerStatsResponse],
    new_balance: int,
) -> PlayerStatsResponse:
    """
    在已有统计上追加一局的收支，返回新的统计

    没有历史统计时以本局收支初始化；平均值为浮点数，不做取整。
    """
    if previous is None:
        return PlayerStatsResponse(
            player_name=player_name,
            total_games=1,
            total_balance=new_balance,
            average_balance=float(new_balance),
            best_balance=new_balance,
            worst_balance=new_balance,
        )

    total_games = previous.total_games + 1
    total_balance = previous.total_balance + new_balance
    return PlayerStatsResponse(
        player_name=player_name,
        total_games=total_games,
        total_balance=total_balance,
        average_balance=total_balance / total_games,
        best_balance=max(previous.best_balance, new_balance),
        worst_balance=min(previous.worst_balance, new_balance),
    )
