"""
对局记录API
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from app.api.deps import get_store
from app.core.exceptions import ValidationError
from app.schemas.common import POINTS_MAX
from app.schemas.record import BalanceResponse, RecordCreate, RecordResponse
from app.services.stats import calculate_point_balance
from app.services.store import Store

router = APIRouter(prefix="/records", tags=["对局记录"])


@router.post("", response_model=RecordResponse)
def create_record(record: RecordCreate, store: Store = Depends(get_store)):
    """保存对局记录并更新玩家统计"""
    return store.save_record(record)


@router.get("", response_model=List[RecordResponse])
def get_records(
    player_name: Optional[str] = Query(None, alias="playerName", description="玩家名称"),
    store: Store = Depends(get_store)
):
    """获取玩家的对局记录（日期从新到旧）"""
    if not player_name or not player_name.strip():
        raise ValidationError("请指定玩家名称", field="playerName")
    return store.list_records(player_name.strip())


@router.get("/balance", response_model=BalanceResponse)
def get_point_balance(
    initial_points: int = Query(..., alias="initialPoints", ge=0, le=POINTS_MAX, description="初期持点"),
    final_points: int = Query(..., alias="finalPoints", ge=0, le=POINTS_MAX, description="最终持点"),
    add_ons: int = Query(0, alias="addOns", ge=0, le=POINTS_MAX, description="追加买入次数"),
):
    """计算点数收支（不保存）"""
    return BalanceResponse(point_balance=calculate_point_balance(initial_points, final_points, add_ons))
