"""统一业务异常模型。

所有跨模块抛出的业务级错误都继承自 BusinessError，
便于在 CLI 层或上层应用做统一捕获与用户提示。

会话层对外只抛出两类错误：
- ConfigError: 构造参数非法，会话不会被创建。
- CompletionError: 补全调用失败，会话仍可继续使用。

NetworkError / ApiError / RateLimitError / MalformedResponseError 由 Provider 抛出，
会话层会把它们包装成 CompletionError 并保留原始异常。
"""

from typing import Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "CONFIG_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 field、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigError(BusinessError):
    """构造参数或配置校验失败（缺少凭证、数值越界等）。"""

    def __init__(self, message: str, **extra):
        super().__init__(code="CONFIG_ERROR", message=message, **extra)


class CompletionError(BusinessError):
    """补全调用失败。cause 保存底层的网络/API 异常，便于诊断。"""

    def __init__(self, message: str, cause: Optional[BaseException] = None, **extra):
        http_status = getattr(cause, "http_status", 502)
        super().__init__(code="COMPLETION_ERROR", message=message, http_status=http_status, **extra)
        self.cause = cause


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(BusinessError):
    """API 返回非 2xx 状态（429 除外）时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流错误，本项目不做自动重试，由调用方决定。"""


class MalformedResponseError(ApiError):
    """响应体不是合法的 JSON 对象。"""
