"""
数据库初始化

应用启动时显式调用一次；之后每个请求经 get_store 再调用 ensure()，
成功一次后直接返回。建表使用 checkfirst 语义，默认设置只在不存在时写入，
因此多个进程或实例重复执行也是安全的。
"""
import logging

from sqlalchemy import inspect, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.config import DEFAULT_INITIAL_POINTS, Config
from app.core.exceptions import StorageFault
from app.core.logging import setup_logging
from app.db.database import Base, build_engine
from app.models import Setting
from app.models.setting import DEFAULT_INITIAL_POINTS_KEY

logger = logging.getLogger(__name__)

TABLE_NAMES = ("records", "stats", "players", "settings")


class SchemaProvisioner:
    """保证四张表存在，并写入默认设置"""

    def __init__(self, engine, default_initial_points: int = DEFAULT_INITIAL_POINTS):
        self.engine = engine
        self.default_initial_points = default_initial_points
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def missing_tables(self):
        existing = set(inspect(self.engine).get_table_names())
        return [name for name in TABLE_NAMES if name not in existing]

    def ensure(self) -> None:
        """建表并写入默认设置；失败时抛出 StorageFault，下次调用重新执行"""
        if self._ready:
            return
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))

            missing = self.missing_tables()
            if missing:
                logger.info("缺少数据表 %s，开始创建", ", ".join(missing))
                Base.metadata.create_all(bind=self.engine)
                logger.info("数据表创建完成")
            else:
                logger.debug("数据表已存在")

            self._seed_settings()
        except SQLAlchemyError as e:
            logger.error("数据库初始化失败: %s", e)
            raise StorageFault("数据库初始化失败", e) from e
        self._ready = True

    def _seed_settings(self) -> None:
        """写入默认初期持点，已存在则忽略"""
        try:
            with self.engine.begin() as conn:
                exists = conn.execute(
                    select(Setting.key).where(Setting.key == DEFAULT_INITIAL_POINTS_KEY)
                ).first()
                if exists is None:
                    conn.execute(Setting.__table__.insert().values(
                        key=DEFAULT_INITIAL_POINTS_KEY,
                        value=str(self.default_initial_points),
                    ))
                    logger.info("已写入默认初期持点 %s", self.default_initial_points)
        except IntegrityError:
            # 其他实例已写入
            logger.debug("默认设置已由其他实例写入")

    def reset(self) -> None:
        self._ready = False


def init_db(config: Config = None):
    """初始化数据库，创建所有表"""
    config = config or Config()
    setup_logging(config.log_level)
    engine = build_engine(config.database_url)
    try:
        SchemaProvisioner(engine, config.default_initial_points).ensure()
    finally:
        engine.dispose()
    logger.info("数据库初始化完成: %s", config.database_url)


if __name__ == "__main__":
    init_db()
