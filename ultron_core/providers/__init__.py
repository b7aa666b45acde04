"""LLM Backend 集成层。

该包下的模块负责：
- 定义 Backend 抽象接口 (base)。
- 维护各 backend kind 的默认配置 (registry)。
- 提供各厂商的具体实现 (openai_client、deepseek_client、custom_client)。
"""

from ultron_core.config.run_config import BackendConfig
from ultron_core.domain.exceptions import ConfigError
from ultron_core.providers.base import ChatBackend
from ultron_core.providers.custom_client import CustomBackend
from ultron_core.providers.deepseek_client import DeepSeekBackend
from ultron_core.providers.openai_client import OpenAIBackend


_BACKENDS = {
    "openai": OpenAIBackend,
    "deepseek": DeepSeekBackend,
    "custom": CustomBackend,
}


def create_backend(config: BackendConfig) -> ChatBackend:
    """根据 config.kind 创建 Backend 实例，未知类型抛出 ConfigError。"""

    backend_cls = _BACKENDS.get(config.kind.lower())
    if backend_cls is None:
        raise ConfigError(code="UNKNOWN_BACKEND", message=f"Unknown backend: {config.kind!r}")
    return backend_cls(config)


__all__ = ["ChatBackend", "create_backend"]
