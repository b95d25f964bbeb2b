"""统一的对话与结果数据模型。

本模块定义了会话层与 Provider 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- ChatRequest: 发给底层 chat/completions 接口的完整请求。
- ChatResult: 从 Provider 解析后的统一响应结果。

Provider 适配器（如 OpenAICompatClient）只依赖这些模型，
并负责在 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple


# 消息角色（与 OpenAI chat/completions 的 role 字段对应）
Role = Literal["system", "user", "assistant"]

ROLES: Tuple[str, ...] = ("system", "user", "assistant")


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    消息一旦写入历史就不会被原地修改，只会追加新消息或整体替换历史，
    因此这里使用 frozen dataclass。
    """

    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown role: {self.role!r}")

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatRequest:
    """一次完整的聊天请求。

    messages 是发起请求时历史的快照（tuple），之后会话继续追加消息不会影响它。
    """

    model: str
    messages: Tuple[ChatMessage, ...]
    max_tokens: int = 1000
    temperature: float = 0.7

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_payload() for m in self.messages],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（会话只读取 index=0 的一条）。"""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次对话调用的最终结果。

    - model: 实际应答的模型名。
    - choices: 一个或多个候选回答，可能为空。
    - usage: 可选的 token 使用统计。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    model: str
    choices: List[ChatChoice] = field(default_factory=list)
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None

    def first_text(self) -> str:
        """返回第一个候选的文本；没有候选或内容为空时返回空字符串。"""

        if not self.choices:
            return ""
        return self.choices[0].message.content or ""
