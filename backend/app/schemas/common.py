"""
公共的Pydantic基础模型
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone

# 与数据库INTEGER列一致的取值范围
POINTS_MAX = 2 ** 31 - 1
POINTS_MIN = -(2 ** 31)


def format_datetime_utc(dt: datetime) -> str:
    """将时间转换为UTC的ISO格式字符串"""
    if dt is None:
        return None
    # 如果时间没有时区信息，假设它是 UTC（SQLite不保存时区）
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


class CamelModel(BaseModel):
    """接口字段使用驼峰命名，输入同时接受蛇形命名"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
