"""
存储接口

路由只依赖 Store，关系型数据库（SqlStore）和键值存储（KeyValueStore）
是可互换的两种实现。两种后端的数据互不兼容，切换后端需要另行迁移数据。
"""
import datetime
import logging
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from app.core.exceptions import StorageFault, ValidationError
from app.schemas.player import PlayerResponse
from app.schemas.record import DailySummaryResponse, RecordCreate, RecordResponse
from app.schemas.settings import SettingsResponse
from app.schemas.stats import PlayerStatsResponse
from app.services.stats import calculate_point_balance

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    return f"record_{uuid.uuid4().hex}"


def new_player_id() -> str:
    return f"player_{uuid.uuid4().hex}"


class Store(ABC):
    """对局记录、玩家统计、玩家和设置的存储接口"""

    # ---- 写操作 ----

    def save_record(self, record: RecordCreate) -> RecordResponse:
        """
        保存对局记录并更新该玩家的统计

        记录写入成功后如果统计更新失败，记录不会回滚，统计保持旧值。
        """
        point_balance = record.point_balance
        expected = calculate_point_balance(record.initial_points, record.final_points, record.add_ons)
        if point_balance is None:
            point_balance = expected
        elif point_balance != expected:
            logger.warning(
                "玩家 %s 提交的收支 %s 与计算值 %s 不一致，按提交值保存",
                record.player_name, point_balance, expected,
            )

        stored = self._insert_record(record.model_copy(update={"point_balance": point_balance}))
        logger.info("已保存记录 %s (玩家=%s, 日期=%s, 收支=%s)",
                    stored.id, stored.player_name, stored.date, stored.point_balance)
        self.update_player_stats(stored.player_name, stored.point_balance)
        return stored

    @abstractmethod
    def _insert_record(self, record: RecordCreate) -> RecordResponse:
        ...

    @abstractmethod
    def update_player_stats(self, player_name: str, new_balance: int) -> PlayerStatsResponse:
        """追加一局收支到玩家统计，失败时抛出 StorageFault"""

    @abstractmethod
    def add_player(self, name: str) -> PlayerResponse:
        """添加玩家，名称重复时抛出 ConflictError"""

    @abstractmethod
    def delete_player(self, player_id: str) -> None:
        """删除玩家，不影响其对局记录和统计"""

    def set_default_initial_stake(self, value: int) -> None:
        if value is None or value <= 0:
            raise ValidationError("初期持点必须为正数", field="defaultInitialPoints")
        self._write_default_initial_points(value)
        logger.info("默认初期持点已更新为 %s", value)

    @abstractmethod
    def _write_default_initial_points(self, value: int) -> None:
        ...

    # ---- 读操作：存储故障时记录日志并返回空结果 ----

    def list_records(self, player_name: str) -> List[RecordResponse]:
        """玩家的全部记录，日期从新到旧"""
        try:
            return self._list_records(player_name)
        except StorageFault:
            logger.exception("获取玩家 %s 的记录失败", player_name)
            return []

    def list_records_for_date(self, date: datetime.date) -> List[RecordResponse]:
        """某一天的全部记录，按玩家名称升序"""
        try:
            return self._list_records_for_date(date)
        except StorageFault:
            logger.exception("获取 %s 的记录失败", date)
            return []

    def list_distinct_dates(self) -> List[datetime.date]:
        """有记录的日期，从新到旧"""
        try:
            return self._list_distinct_dates()
        except StorageFault:
            logger.exception("获取日期列表失败")
            return []

    def list_players(self) -> List[PlayerResponse]:
        """全部玩家，按名称升序"""
        try:
            return self._list_players()
        except StorageFault:
            logger.exception("获取玩家列表失败")
            return []

    def get_player_stats(self, player_name: str) -> Optional[PlayerStatsResponse]:
        try:
            return self._get_player_stats(player_name)
        except StorageFault:
            logger.exception("获取玩家 %s 的统计失败", player_name)
            return None

    def daily_summary(self, date: datetime.date) -> DailySummaryResponse:
        records = self.list_records_for_date(date)
        return DailySummaryResponse(
            date=date,
            record_count=len(records),
            total_balance=sum(r.point_balance for r in records),
            records=records,
        )

    def get_settings(self) -> SettingsResponse:
        return SettingsResponse(
            players=[p.name for p in self.list_players()],
            default_initial_points=self._read_default_initial_points(),
        )

    @abstractmethod
    def get_player(self, player_id: str) -> PlayerResponse:
        """按ID获取玩家，不存在时抛出 NotFoundError"""

    @abstractmethod
    def _list_records(self, player_name: str) -> List[RecordResponse]:
        ...

    @abstractmethod
    def _list_records_for_date(self, date: datetime.date) -> List[RecordResponse]:
        ...

    @abstractmethod
    def _list_distinct_dates(self) -> List[datetime.date]:
        ...

    @abstractmethod
    def _list_players(self) -> List[PlayerResponse]:
        ...

    @abstractmethod
    def _get_player_stats(self, player_name: str) -> Optional[PlayerStatsResponse]:
        ...

    @abstractmethod
    def _read_default_initial_points(self) -> int:
        ...
