"""Backend 默认配置。

每种 backend kind 对应一个 ProviderConfig，记录默认的 base_url 与模型，
用户配置中未填写的字段由这里补齐。
"""

from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Backend 的默认配置。"""

    name: str
    base_url: Optional[str]
    default_model: Optional[str]
    requires_api_key: bool = True


OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url=None,  # 由 openai SDK 决定
    default_model="gpt-4o-mini",
)

DEEPSEEK_CONFIG = ProviderConfig(
    name="deepseek",
    base_url="https://api.deepseek.com",
    default_model="deepseek-chat",
)

# 自定义 OpenAI 兼容服务（本地推理服务等），base_url 与模型必须由用户提供
CUSTOM_CONFIG = ProviderConfig(
    name="custom",
    base_url=None,
    default_model=None,
    requires_api_key=False,
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "openai": OPENAI_CONFIG,
    "deepseek": DEEPSEEK_CONFIG,
    "custom": CUSTOM_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
