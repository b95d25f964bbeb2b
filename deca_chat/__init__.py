"""DecaChat 顶层包。

面向 OpenAI 兼容 chat/completions 接口的轻量会话管理器，
包括配置加载、领域模型、Provider 适配、会话状态与命令行入口。
"""

from deca_chat.domain.exceptions import CompletionError, ConfigError
from deca_chat.domain.models import ChatMessage
from deca_chat.session import ChatSession, SessionConfig

__all__ = ["ChatMessage", "ChatSession", "CompletionError", "ConfigError", "SessionConfig"]
