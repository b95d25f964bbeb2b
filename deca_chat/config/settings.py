"""配置管理模块。

支持从初始化参数、环境变量（前缀 DECA_CHAT_）、.env 以及 config.yaml 加载配置，
优先级依次降低。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from deca_chat.domain.exceptions import ConfigError


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("DECA_CHAT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。

    这里只做类型转换，取值范围校验统一放在 SessionConfig 中，
    以便非法值以 ConfigError 的形式报告。
    """

    # ---- Provider 相关配置 ----
    provider: str = Field(default="openai", description="端点预设名称，例如 openai、groq")
    api_key: Optional[str] = Field(default=None, description="OpenAI 兼容 API 密钥")
    model: Optional[str] = Field(default=None, description="模型名，为空时使用预设的默认模型")
    base_url: Optional[str] = Field(default=None, description="API 基础URL，为空时使用预设地址")
    max_tokens: int = Field(default=1000, description="单次回复的最大 token 数")
    temperature: float = Field(default=0.7, description="生成温度，取值 0~1")
    intro: Optional[str] = Field(default=None, description="助手开场白")
    system_message: Optional[str] = Field(default=None, description="系统提示词")
    http_timeout: float = Field(default=30.0, description="HTTP 超时时间（秒）")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_prefix="DECA_CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("api_key", "model", "base_url", "intro", "system_message")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """获取全局 Settings（单例，首次调用时才读取环境变量与配置文件）。

    Raises:
        ConfigError: 环境变量或配置文件中的值无法转换为对应类型。
    """
    global _settings
    if _settings is None:
        try:
            _settings = Settings()
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ConfigError(f"Invalid settings: {fields}", field=fields) from e
    return _settings
