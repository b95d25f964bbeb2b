"""端点预设。

不同厂商的 OpenAI 兼容接口只在 base_url 和默认模型上有区别，
这里集中维护这些预设，CLI 和 Settings 通过名称选择。"""

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class ProviderPreset:
    """单个端点预设。"""

    name: str
    base_url: str
    default_model: str
    api_key_env: str


OPENAI_PRESET = ProviderPreset(
    name="openai",
    base_url="https://api.openai.com/v1",
    default_model="gpt-4o-mini",
    api_key_env="OPENAI_API_KEY",
)

GROQ_PRESET = ProviderPreset(
    name="groq",
    base_url="https://api.groq.com/openai/v1",
    default_model="mixtral-8x7b-32768",
    api_key_env="GROQ_API_KEY",
)


PRESET_REGISTRY: Mapping[str, ProviderPreset] = {
    "openai": OPENAI_PRESET,
    "groq": GROQ_PRESET,
}


def get_preset(name: str) -> ProviderPreset:
    """根据名称获取 ProviderPreset，名称不区分大小写。"""

    key = name.lower()
    for k, preset in PRESET_REGISTRY.items():
        if k.lower() == key:
            return preset
    raise KeyError(f"Unknown provider: {name!r}")
