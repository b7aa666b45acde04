"""ChatBackend 抽象接口。

控制循环不直接依赖具体厂商的 SDK，而是依赖此协议：

- 每个厂商实现一个 ChatBackend（OpenAIBackend / DeepSeekBackend / CustomBackend）。
- 负责：把 ChatMessage 列表转成具体 API 请求，并把第一个 choice 转回 ChatMessage。

这样可以在不改控制循环的前提下接入更多厂商。
"""

from typing import Protocol, Sequence

from ultron_core.domain.models import ChatMessage


class ChatBackend(Protocol):
    """LLM Backend 协议。

    实现者需要提供：
    - name: Backend 名称，用于日志。
    - complete(conversation): 执行一次对话调用，返回唯一一条 assistant 消息；
      失败时抛出 BackendError 的子类，且不得修改传入的会话。
    """

    name: str

    def complete(self, conversation: Sequence[ChatMessage]) -> ChatMessage:
        ...
