"""Session-scoped configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from deca_chat.domain.exceptions import ConfigError
from deca_chat.providers.registry import OPENAI_PRESET, get_preset


DEFAULT_MODEL = OPENAI_PRESET.default_model
DEFAULT_BASE_URL = OPENAI_PRESET.base_url
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(frozen=True)
class SessionConfig:
    """构造 ChatSession 所需的全部配置，创建时完成默认值填充与校验。

    Attributes:
        api_key: OpenAI 兼容接口的凭证，必填且不能为空。
        model: 模型名。
        base_url: API 基础URL。
        max_tokens: 单次回复的最大 token 数，必须 > 0。
        temperature: 生成温度，必须在 [0, 1] 之间。
        intro: 可选的助手开场白，第一次发送消息时才写入历史。
        system_message: 可选的系统提示词。
        http_timeout: HTTP 超时时间（秒），必须 >= 1。
    """

    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    intro: Optional[str] = None
    system_message: Optional[str] = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self) -> None:
        if not isinstance(self.api_key, str) or not self.api_key.strip():
            raise ConfigError("api_key is required", field="api_key")
        if not self.model:
            raise ConfigError("model must not be empty", field="model")
        if not self.base_url:
            raise ConfigError("base_url must not be empty", field="base_url")
        if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int) or self.max_tokens <= 0:
            raise ConfigError(
                f"max_tokens must be a positive integer, got {self.max_tokens!r}", field="max_tokens"
            )
        if isinstance(self.temperature, bool) or not isinstance(self.temperature, (int, float)):
            raise ConfigError(f"temperature must be a number, got {self.temperature!r}", field="temperature")
        # NaN 也会落到这里
        if not 0.0 <= self.temperature <= 1.0:
            raise ConfigError(
                f"temperature must be between 0 and 1, got {self.temperature!r}", field="temperature"
            )
        if not self.http_timeout or self.http_timeout < 1.0:
            raise ConfigError(
                f"http_timeout must be at least 1 second, got {self.http_timeout!r}", field="http_timeout"
            )

    @classmethod
    def from_settings(cls, cfg, preset: Optional[str] = None, **overrides) -> "SessionConfig":
        """从 Settings 构建配置；overrides 中非 None 的值优先。

        model/base_url 未配置时取预设的默认值，预设名优先用 preset 参数，
        其次是 cfg.provider。
        """

        try:
            chosen = get_preset(preset or getattr(cfg, "provider", None) or OPENAI_PRESET.name)
        except KeyError as e:
            raise ConfigError(str(e), field="provider") from e
        values = {
            "api_key": cfg.api_key,
            "model": cfg.model or chosen.default_model,
            "base_url": cfg.base_url or chosen.base_url,
            "max_tokens": cfg.max_tokens,
            "temperature": cfg.temperature,
            "intro": cfg.intro,
            "system_message": cfg.system_message,
            "http_timeout": cfg.http_timeout,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        if values["api_key"] is None:
            raise ConfigError("api_key is required", field="api_key")
        return cls(**values)
