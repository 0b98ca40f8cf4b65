"""
每日记录API
"""
import datetime
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from app.api.deps import get_store
from app.core.exceptions import ValidationError
from app.schemas.record import DailySummaryResponse, RecordResponse
from app.services.store import Store

router = APIRouter(tags=["每日记录"])


def parse_date(value: Optional[str]) -> datetime.date:
    if not value:
        raise ValidationError("请指定日期", field="date")
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"日期格式错误，应为YYYY-MM-DD: {value}", field="date")


@router.get("/daily-records", response_model=List[RecordResponse])
def get_daily_records(
    date: Optional[str] = Query(None, description="日期，格式：YYYY-MM-DD"),
    store: Store = Depends(get_store)
):
    """获取某一天的全部记录（按玩家名称排序）"""
    return store.list_records_for_date(parse_date(date))


@router.get("/daily-summary", response_model=DailySummaryResponse)
def get_daily_summary(
    date: Optional[str] = Query(None, description="日期，格式：YYYY-MM-DD"),
    store: Store = Depends(get_store)
):
    """获取某一天的汇总：记录数和收支合计"""
    return store.daily_summary(parse_date(date))


@router.get("/dates", response_model=List[datetime.date])
def get_record_dates(store: Store = Depends(get_store)):
    """获取有记录的日期列表（从新到旧）"""
    return store.list_distinct_dates()
