"""会话层：ChatSession 与 SessionConfig。"""

from .chat_session import ChatSession
from .config import SessionConfig

__all__ = ["ChatSession", "SessionConfig"]
