"""会话核心模块。

ChatSession 持有有序的消息历史，负责：
- 维护 system 消息只出现在开头的约束（设置 system 消息即重置历史）。
- 延迟写入开场白：只在第一次发送用户消息时写入一次。
- 每次 send_message 只调用一次补全接口，成功追加 assistant 回复，失败保留用户消息。
"""

import copy
import logging
import threading
from typing import Any, Dict, List, Optional
from uuid import uuid4

from deca_chat.config.settings import get_settings
from deca_chat.domain.exceptions import CompletionError, ConfigError
from deca_chat.domain.models import ChatMessage, ChatRequest
from deca_chat.infrastructure.logging.logger import logger
from deca_chat.providers import create_provider
from deca_chat.providers.base import CompletionProvider
from deca_chat.session.config import SessionConfig


class ChatSession:
    def __init__(self, config: SessionConfig, provider: Optional[CompletionProvider] = None):
        if not isinstance(config, SessionConfig):
            raise ConfigError(f"config must be a SessionConfig, got {type(config).__name__}")
        self._config = config
        self._provider = provider or create_provider(config)
        self._history: List[ChatMessage] = []
        self._intro_text: Optional[str] = None
        self._intro_pending = False
        self._lock = threading.Lock()
        self._log_ctx: Dict[str, Any] = {
            "session_id": f"ss-{uuid4().hex}",
            "provider": getattr(self._provider, "name", type(self._provider).__name__),
            "model": config.model,
        }

        if config.system_message:
            self.set_system_message(config.system_message)
        if config.intro:
            self._intro_text = config.intro
            self._intro_pending = True
        self._log(logging.INFO, "Created chat session", intro_pending=self._intro_pending)

    @classmethod
    def create(cls, api_key: str, provider: Optional[CompletionProvider] = None, **options: Any) -> "ChatSession":
        """以关键字参数构造会话，未给出的配置项使用默认值。

        Raises:
            ConfigError: api_key 为空，或 max_tokens / temperature 越界。
        """

        try:
            config = SessionConfig(api_key=api_key, **options)
        except TypeError as e:
            raise ConfigError(str(e)) from e
        return cls(config, provider=provider)

    @classmethod
    def from_settings(cls, cfg=None, provider: Optional[CompletionProvider] = None, **overrides: Any) -> "ChatSession":
        """从 Settings（默认是全局 get_settings()）构造会话。

        Raises:
            ConfigError: Settings 无法加载，或其中的值不合法。
        """

        if cfg is None:
            cfg = get_settings()
        return cls(SessionConfig.from_settings(cfg, **overrides), provider=provider)

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def intro_pending(self) -> bool:
        return self._intro_pending

    @property
    def intro_text(self) -> Optional[str]:
        return self._intro_text

    def __len__(self) -> int:
        return len(self._history)

    def set_system_message(self, message: str) -> None:
        """设置系统提示词。

        注意这是重置而不是追加：之前的所有消息都会被丢弃，
        历史变为只包含这一条 system 消息。
        """

        with self._lock:
            dropped = len(self._history)
            self._history = [ChatMessage(role="system", content=message)]
        self._log(logging.INFO, "Reset history with system message", dropped=dropped)

    def set_intro(self, message: str) -> None:
        """设置开场白。

        历史中还没有对话轮次（为空或只有 system 消息）时，开场白会在下一次
        send_message 时写入；否则只保存文本，不会立即插入历史。
        """

        with self._lock:
            self._intro_text = message
            if not self._has_turns():
                self._intro_pending = True
        self._log(logging.INFO, "Set intro message", intro_pending=self._intro_pending)

    def send_message(self, message: str) -> str:
        """发送一条用户消息并返回助手回复。

        Returns:
            第一个候选的文本；接口没有返回内容时为空字符串。

        Raises:
            CompletionError: 补全调用失败。此时用户消息仍保留在历史中，
                可以直接再次调用 send_message 或 clear_conversation。
        """

        with self._lock:
            if self._intro_pending:
                self._history.append(ChatMessage(role="assistant", content=self._intro_text or ""))
                self._intro_pending = False
            self._history.append(ChatMessage(role="user", content=message))

            req = ChatRequest(
                model=self._config.model,
                messages=tuple(self._history),
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
            )
            self._log(logging.INFO, "Sending message", history_length=len(self._history))
            try:
                result = self._provider.complete(req)
            except Exception as e:
                self._log(logging.ERROR, "Completion failed", error=str(e), error_type=type(e).__name__)
                raise CompletionError(f"Failed to get response: {e}", cause=e) from e

            reply = result.first_text()
            self._history.append(ChatMessage(role="assistant", content=reply))
            self._log(
                logging.INFO,
                "Received reply",
                reply_length=len(reply),
                total_tokens=result.usage.total_tokens if result.usage else None,
            )
            return reply

    def clear_conversation(self) -> None:
        """清空历史。开场白不会因此重新写入。

        发送中调用会等待本次回复写入后再清空。
        """

        with self._lock:
            self._history = []
        self._log(logging.INFO, "Cleared conversation")

    def get_conversation(self) -> List[ChatMessage]:
        """返回历史的独立副本，修改返回值不会影响会话内部状态。"""

        return copy.deepcopy(self._history)

    # ---- 辅助方法 ----

    def _has_turns(self) -> bool:
        return any(m.role != "system" for m in self._history)

    def _log(self, level: int, message: str, **fields: Any) -> None:
        payload = dict(self._log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
