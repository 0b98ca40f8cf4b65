"""
关系型数据库存储（SQLAlchemy）
"""
import datetime
import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import Float, case, cast, distinct, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import DEFAULT_INITIAL_POINTS
from app.core.exceptions import ConflictError, NotFoundError, StorageFault
from app.models.player import Player
from app.models.player_stats import PlayerStats
from app.models.record import Record
from app.models.setting import DEFAULT_INITIAL_POINTS_KEY, Setting
from app.schemas.player import PlayerResponse
from app.schemas.record import RecordCreate, RecordResponse
from app.schemas.stats import PlayerStatsResponse
from app.services.store import Store, new_player_id, new_record_id

logger = logging.getLogger(__name__)


class SqlStore(Store):
    """基于一个数据库会话的存储实现，每个请求一个实例"""

    def __init__(self, db: Session, default_initial_points: int = DEFAULT_INITIAL_POINTS):
        self.db = db
        self.default_initial_points = default_initial_points

    @contextmanager
    def _guard(self, message: str):
        """把数据库异常、驱动层数值溢出和读出数据的校验失败转换为 StorageFault，并回滚当前事务"""
        try:
            yield
        except (SQLAlchemyError, OverflowError, ValueError) as e:
            self.db.rollback()
            raise StorageFault(message, e) from e

    # ---- 对局记录 ----

    def _insert_record(self, record: RecordCreate) -> RecordResponse:
        with self._guard("记录保存失败"):
            db_record = Record(
                id=new_record_id(),
                player_name=record.player_name,
                date=record.date,
                initial_points=record.initial_points,
                final_points=record.final_points,
                add_ons=record.add_ons,
                point_balance=record.point_balance,
            )
            self.db.add(db_record)
            self.db.commit()
            self.db.refresh(db_record)
            return RecordResponse.model_validate(db_record)

    def _list_records(self, player_name: str) -> List[RecordResponse]:
        with self._guard("记录查询失败"):
            rows = self.db.query(Record).filter(
                Record.player_name == player_name
            ).order_by(Record.date.desc(), Record.created_at.desc()).all()
            return [RecordResponse.model_validate(r) for r in rows]

    def _list_records_for_date(self, date: datetime.date) -> List[RecordResponse]:
        with self._guard("记录查询失败"):
            rows = self.db.query(Record).filter(
                Record.date == date
            ).order_by(Record.player_name.asc(), Record.created_at.asc()).all()
            return [RecordResponse.model_validate(r) for r in rows]

    def _list_distinct_dates(self) -> List[datetime.date]:
        with self._guard("日期查询失败"):
            rows = self.db.execute(
                select(distinct(Record.date)).order_by(Record.date.desc())
            ).scalars().all()
            return list(rows)

    # ---- 玩家统计 ----

    def _get_player_stats(self, player_name: str) -> Optional[PlayerStatsResponse]:
        with self._guard("统计查询失败"):
            stats = self.db.get(PlayerStats, player_name)
            if stats is None:
                return None
            return PlayerStatsResponse.model_validate(stats)

    def _increment_stats(self, player_name: str, new_balance: int) -> int:
        """在一条UPDATE语句内完成累加，SET右侧引用的都是更新前的值"""
        new_total = PlayerStats.total_balance + new_balance
        new_games = PlayerStats.total_games + 1
        result = self.db.execute(
            update(PlayerStats)
            .where(PlayerStats.player_name == player_name)
            .values(
                total_games=new_games,
                total_balance=new_total,
                average_balance=cast(new_total, Float) / new_games,
                best_balance=case(
                    (PlayerStats.best_balance < new_balance, new_balance),
                    else_=PlayerStats.best_balance,
                ),
                worst_balance=case(
                    (PlayerStats.worst_balance > new_balance, new_balance),
                    else_=PlayerStats.worst_balance,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def update_player_stats(self, player_name: str, new_balance: int) -> PlayerStatsResponse:
        with self._guard("统计更新失败"):
            if self._increment_stats(player_name, new_balance) == 0:
                # 首局：插入初始统计；并发插入冲突时改为累加
                self.db.add(PlayerStats(
                    player_name=player_name,
                    total_games=1,
                    total_balance=new_balance,
                    average_balance=float(new_balance),
                    best_balance=new_balance,
                    worst_balance=new_balance,
                ))
                try:
                    self.db.commit()
                except IntegrityError:
                    self.db.rollback()
                    self._increment_stats(player_name, new_balance)
                    self.db.commit()
            else:
                self.db.commit()

            stats = self.db.get(PlayerStats, player_name, populate_existing=True)
            logger.debug("玩家 %s 统计已更新: 场次=%s 累计=%s",
                         player_name, stats.total_games, stats.total_balance)
            return PlayerStatsResponse.model_validate(stats)

    # ---- 玩家 ----

    def _list_players(self) -> List[PlayerResponse]:
        with self._guard("玩家查询失败"):
            rows = self.db.query(Player).order_by(Player.name.asc()).all()
            return [PlayerResponse.model_validate(p) for p in rows]

    def get_player(self, player_id: str) -> PlayerResponse:
        with self._guard("玩家查询失败"):
            player = self.db.get(Player, player_id)
        if player is None:
            raise NotFoundError("玩家不存在")
        return PlayerResponse.model_validate(player)

    def add_player(self, name: str) -> PlayerResponse:
        with self._guard("玩家添加失败"):
            existing = self.db.query(Player).filter(Player.name == name).first()
            if existing:
                raise ConflictError(f"玩家名称 '{name}' 已存在，请使用其他名称")

            db_player = Player(id=new_player_id(), name=name)
            self.db.add(db_player)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise ConflictError(f"玩家名称 '{name}' 已存在，请使用其他名称")
            self.db.refresh(db_player)
            logger.info("已添加玩家 %s (%s)", db_player.name, db_player.id)
            return PlayerResponse.model_validate(db_player)

    def delete_player(self, player_id: str) -> None:
        with self._guard("玩家删除失败"):
            deleted = self.db.query(Player).filter(Player.id == player_id).delete(
                synchronize_session=False
            )
            self.db.commit()
        if deleted:
            logger.info("已删除玩家 %s", player_id)
        else:
            logger.info("删除玩家 %s 时未找到对应记录", player_id)

    # ---- 设置 ----

    def _read_default_initial_points(self) -> int:
        with self._guard("设置查询失败"):
            setting = self.db.get(Setting, DEFAULT_INITIAL_POINTS_KEY)
            if setting is None:
                return self.default_initial_points
            return int(setting.value)

    def _write_default_initial_points(self, value: int) -> None:
        with self._guard("设置更新失败"):
            setting = self.db.get(Setting, DEFAULT_INITIAL_POINTS_KEY)
            if setting is None:
                self.db.add(Setting(key=DEFAULT_INITIAL_POINTS_KEY, value=str(value)))
            else:
                setting.value = str(value)
            self.db.commit()
