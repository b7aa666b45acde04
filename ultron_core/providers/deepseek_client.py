"""DeepSeek Backend 适配器。

DeepSeek 提供与 OpenAI 兼容的 chat/completions 接口，官方推荐直接使用
openai SDK 并把 base_url 指向 https://api.deepseek.com。
"""

from ultron_core.providers.openai_client import OpenAIBackend
from ultron_core.providers.registry import DEEPSEEK_CONFIG


class DeepSeekBackend(OpenAIBackend):
    """DeepSeek 客户端实现。"""

    name = "deepseek"
    defaults = DEEPSEEK_CONFIG
