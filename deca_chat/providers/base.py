"""Provider 抽象接口。

ChatSession 不直接依赖 HTTP SDK，而是依赖此协议：

- 负责：将 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。
- 失败时抛出 domain.exceptions 中的异常（或任意其他异常），由会话层统一包装。

测试中可以用任意实现了 complete() 的对象替换真实客户端。
"""

from typing import Protocol

from deca_chat.domain.models import ChatRequest, ChatResult


class CompletionProvider(Protocol):
    """补全能力协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - complete(req): 执行一次非流式对话调用，返回统一的 ChatResult。
    """

    name: str

    def complete(self, req: ChatRequest) -> ChatResult:
        ...
