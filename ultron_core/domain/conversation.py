from pathlib import Path
from typing import List, Protocol, Union

from .models import ChatMessage


PathLike = Union[str, Path]


class ConversationStore(Protocol):
    """有序、只追加的会话日志。

    - append 是唯一的增量修改入口。
    - snapshot 返回副本，调用方修改副本不会影响进行中的会话。
    - persist / restore / clear 负责与持久化文件交互。
    """

    def append(self, message: ChatMessage) -> None:
        ...

    def snapshot(self) -> List[ChatMessage]:
        ...

    def persist(self, path: PathLike) -> None:
        ...

    def restore(self, path: PathLike) -> List[ChatMessage]:
        ...

    def clear(self, path: PathLike) -> None:
        ...
