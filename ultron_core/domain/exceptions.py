"""统一异常模型。

所有跨模块抛出的错误都继承自 UltronError，便于控制循环统一记录日志、
按类型决定退避重试还是直接退出。

分类：
- ConfigError: 启动阶段的配置错误，唯一的致命错误。
- BackendError 及其子类: LLM 调用失败，可恢复。
- NetworkError / RemoteError / ValidationError: turtle 网关相关错误，可恢复。
- PersistenceError 及其子类: 会话历史读写失败，不致命。
"""

from typing import Optional


class UltronError(Exception):
    """异常基类。

    Attributes:
        code: 机器可读错误码（如 "BACKEND_TIMEOUT"）。
        message: 可读错误信息。
        extra: 其他补充字段（例如 backend、path 等），会原样写入日志。
    """

    def __init__(self, code: str, message: str, **extra):
        self.code = code
        self.message = message
        self.extra = extra
        super().__init__(message)


class ConfigError(UltronError):
    """配置无法解析或校验失败（未知 backend、缺失密钥、提示词不可读等）。"""


# ---- LLM Backend ----


class BackendError(UltronError):
    """LLM Backend 调用失败的基类。"""


class BackendTransportError(BackendError):
    """网络层错误，例如 DNS 失败、连接被拒绝。"""


class BackendTimeoutError(BackendTransportError):
    """单次调用超过超时时间。"""


class BackendStatusError(BackendError):
    """Backend 返回非成功状态码。"""

    def __init__(self, code: str, message: str, status: Optional[int] = None, **extra):
        self.status = status
        super().__init__(code, message, status=status, **extra)


class BackendMalformedError(BackendError):
    """响应体无法解析或缺少 choices。"""


class BackendSerializationError(BackendError):
    """请求 payload 无法序列化。"""


# ---- Turtle 网关 ----


class NetworkError(UltronError):
    """与 turtle API 通信时的网络错误。"""


class RemoteError(UltronError):
    """turtle API 返回非 200 状态码。"""

    def __init__(self, code: str, message: str, status: int, **extra):
        self.status = status
        super().__init__(code, message, status=status, **extra)


class ValidationError(UltronError):
    """命令批次无法序列化为 JSON 字符串数组。"""


# ---- 持久化 ----


class PersistenceError(UltronError):
    """会话历史读写失败。"""


class HistoryNotFoundError(PersistenceError):
    """历史文件不存在（视为从头开始）。"""


class HistoryParseError(PersistenceError):
    """历史文件内容无法解析。"""
