"""
业务异常定义

所有异常都带有HTTP状态码和面向用户的提示信息，由 main.py 中的异常处理器
统一转换为 {"error": "..."} 格式的JSON响应。
"""


class AppError(Exception):
    """业务异常基类"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """输入缺失、格式错误或超出范围"""
    status_code = 400

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class NotFoundError(AppError):
    """引用的实体不存在"""
    status_code = 404


class ConflictError(AppError):
    """唯一约束冲突（例如玩家名称重复）"""
    status_code = 409


class StorageFault(AppError):
    """数据库连接或查询失败"""
    status_code = 500

    def __init__(self, message: str, cause: Exception = None):
        # 提示信息后追加底层错误文本
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause
