"""
键值存储

数据布局：
    records:<玩家名称>   哈希，记录ID -> 记录JSON
    stats:<玩家名称>     统计JSON
    players              哈希，玩家ID -> 玩家JSON
    settings             哈希，配置键 -> 配置值

客户端需提供 hset/hsetnx/hget/hgetall/hdel/get/set/keys 这组哈希接口，
以及返回可用于 with 语句的锁的 lock(name)。内置的 MemoryHashClient
用于单进程部署和测试。
"""
import datetime
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, List, Optional

from app.core.config import DEFAULT_INITIAL_POINTS
from app.core.exceptions import ConflictError, NotFoundError, StorageFault
from app.models.record import utcnow
from app.models.setting import DEFAULT_INITIAL_POINTS_KEY
from app.schemas.player import PlayerResponse
from app.schemas.record import RecordCreate, RecordResponse
from app.schemas.stats import PlayerStatsResponse
from app.services.stats import accumulate
from app.services.store import Store, new_player_id, new_record_id

logger = logging.getLogger(__name__)

RECORDS_PREFIX = "records:"
STATS_PREFIX = "stats:"
PLAYERS_KEY = "players"
SETTINGS_KEY = "settings"


class MemoryHashClient:
    """进程内的哈希键值存储"""

    def __init__(self):
        self._lock = threading.RLock()
        self._values: Dict[str, str] = {}
        self._hashes: Dict[str, Dict[str, str]] = defaultdict(dict)
        self._named_locks: Dict[str, threading.Lock] = {}

    def lock(self, name: str) -> threading.Lock:
        """按名称返回锁，同名共用同一把锁"""
        with self._lock:
            named = self._named_locks.get(name)
            if named is None:
                named = self._named_locks[name] = threading.Lock()
            return named

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def hset(self, key: str, mapping: Dict[str, str]) -> None:
        with self._lock:
            self._hashes[key].update(mapping)

    def hsetnx(self, key: str, field: str, value: str) -> bool:
        with self._lock:
            if field in self._hashes[key]:
                return False
            self._hashes[key][field] = value
            return True

    def hget(self, key: str, field: str) -> Optional[str]:
        with self._lock:
            return self._hashes.get(key, {}).get(field)

    def hgetall(self, key: str) -> Dict[str, str]:
        with self._lock:
            return dict(self._hashes.get(key, {}))

    def hdel(self, key: str, field: str) -> int:
        with self._lock:
            return 1 if self._hashes.get(key, {}).pop(field, None) is not None else 0

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            names = set(self._values) | {k for k, v in self._hashes.items() if v}
            return sorted(k for k in names if k.startswith(prefix))


class KeyValueProvisioner:
    """键值存储无需建表，只写入默认设置（已存在则跳过）"""

    def __init__(self, client, default_initial_points: int = DEFAULT_INITIAL_POINTS):
        self.client = client
        self.default_initial_points = default_initial_points
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure(self) -> None:
        if self._ready:
            return
        try:
            if self.client.hsetnx(SETTINGS_KEY, DEFAULT_INITIAL_POINTS_KEY, str(self.default_initial_points)):
                logger.info("已写入默认初期持点 %s", self.default_initial_points)
        except (OSError, ValueError) as e:
            logger.error("键值存储初始化失败: %s", e)
            raise StorageFault("存储初始化失败", e) from e
        self._ready = True

    def reset(self) -> None:
        self._ready = False


class KeyValueStore(Store):
    """基于哈希键值客户端的存储实现"""

    def __init__(self, client, default_initial_points: int = DEFAULT_INITIAL_POINTS):
        self.client = client
        self.default_initial_points = default_initial_points

    @contextmanager
    def _guard(self, message: str):
        try:
            yield
        except (OSError, ValueError) as e:
            raise StorageFault(message, e) from e

    # ---- 对局记录 ----

    def _insert_record(self, record: RecordCreate) -> RecordResponse:
        stored = RecordResponse(
            id=new_record_id(),
            created_at=utcnow(),
            **record.model_dump(),
        )
        with self._guard("记录保存失败"):
            self.client.hset(RECORDS_PREFIX + stored.player_name, {stored.id: stored.model_dump_json()})
        return stored

    def _load_records(self, key: str) -> List[RecordResponse]:
        return [RecordResponse.model_validate_json(raw) for raw in self.client.hgetall(key).values()]

    def _list_records(self, player_name: str) -> List[RecordResponse]:
        with self._guard("记录查询失败"):
            records = self._load_records(RECORDS_PREFIX + player_name)
        return sorted(records, key=lambda r: (r.date, r.created_at), reverse=True)

    def _list_records_for_date(self, date: datetime.date) -> List[RecordResponse]:
        with self._guard("记录查询失败"):
            records = [
                r
                for key in self.client.keys(RECORDS_PREFIX)
                for r in self._load_records(key)
                if r.date == date
            ]
        return sorted(records, key=lambda r: (r.player_name, r.created_at))

    def _list_distinct_dates(self) -> List[datetime.date]:
        with self._guard("日期查询失败"):
            dates = {
                r.date
                for key in self.client.keys(RECORDS_PREFIX)
                for r in self._load_records(key)
            }
        return sorted(dates, reverse=True)

    # ---- 玩家统计 ----

    def _get_player_stats(self, player_name: str) -> Optional[PlayerStatsResponse]:
        with self._guard("统计查询失败"):
            raw = self.client.get(STATS_PREFIX + player_name)
            if raw is None:
                return None
            return PlayerStatsResponse.model_validate_json(raw)

    def update_player_stats(self, player_name: str, new_balance: int) -> PlayerStatsResponse:
        # 同一玩家的统计更新串行执行
        with self.client.lock(STATS_PREFIX + player_name), self._guard("统计更新失败"):
            raw = self.client.get(STATS_PREFIX + player_name)
            previous = PlayerStatsResponse.model_validate_json(raw) if raw is not None else None
            stats = accumulate(player_name, previous, new_balance)
            self.client.set(STATS_PREFIX + player_name, stats.model_dump_json())
        return stats

    # ---- 玩家 ----

    def _all_players(self) -> List[PlayerResponse]:
        return [PlayerResponse.model_validate_json(raw) for raw in self.client.hgetall(PLAYERS_KEY).values()]

    def _list_players(self) -> List[PlayerResponse]:
        with self._guard("玩家查询失败"):
            players = self._all_players()
        return sorted(players, key=lambda p: p.name)

    def get_player(self, player_id: str) -> PlayerResponse:
        with self._guard("玩家查询失败"):
            raw = self.client.hget(PLAYERS_KEY, player_id)
        if raw is None:
            raise NotFoundError("玩家不存在")
        return PlayerResponse.model_validate_json(raw)

    def add_player(self, name: str) -> PlayerResponse:
        with self.client.lock(PLAYERS_KEY), self._guard("玩家添加失败"):
            if any(p.name == name for p in self._all_players()):
                raise ConflictError(f"玩家名称 '{name}' 已存在，请使用其他名称")
            player = PlayerResponse(id=new_player_id(), name=name, created_at=utcnow())
            self.client.hset(PLAYERS_KEY, {player.id: player.model_dump_json()})
        logger.info("已添加玩家 %s (%s)", player.name, player.id)
        return player

    def delete_player(self, player_id: str) -> None:
        with self._guard("玩家删除失败"):
            deleted = self.client.hdel(PLAYERS_KEY, player_id)
        if deleted:
            logger.info("已删除玩家 %s", player_id)

    # ---- 设置 ----

    def _read_default_initial_points(self) -> int:
        with self._guard("设置查询失败"):
            raw = self.client.hget(SETTINGS_KEY, DEFAULT_INITIAL_POINTS_KEY)
            if raw is None:
                return self.default_initial_points
            return int(raw)

    def _write_default_initial_points(self, value: int) -> None:
        with self._guard("设置更新失败"):
            self.client.hset(SETTINGS_KEY, {DEFAULT_INITIAL_POINTS_KEY: str(value)})
