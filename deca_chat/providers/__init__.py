"""补全 Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护端点预设 (registry)。
- 提供 OpenAI 兼容接口的具体实现 (openai_client)。
"""

from typing import TYPE_CHECKING

from deca_chat.providers.base import CompletionProvider
from deca_chat.providers.openai_client import OpenAICompatClient

if TYPE_CHECKING:
    from deca_chat.session.config import SessionConfig


def create_provider(config: "SessionConfig") -> CompletionProvider:
    """根据会话配置创建 Provider 实例。"""

    return OpenAICompatClient(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.http_timeout,
    )


__all__ = ["CompletionProvider", "OpenAICompatClient", "create_provider"]
