import json
import os
import threading
from pathlib import Path
from typing import Iterable, List, Optional
from uuid import uuid4

from ultron_core.domain.conversation import ConversationStore, PathLike
from ultron_core.domain.exceptions import HistoryNotFoundError, HistoryParseError, PersistenceError
from ultron_core.domain.models import ChatMessage


class JsonConversationStore(ConversationStore):
    """内存会话日志 + 缩进 JSON 文件持久化。

    所有读写都经过同一把 RLock，交互式前端与控制循环共享同一实例时
    不会并发修改会话。
    """

    def __init__(self, messages: Optional[Iterable[ChatMessage]] = None):
        self._lock = threading.RLock()
        self._messages: List[ChatMessage] = list(messages or [])

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def append(self, message: ChatMessage) -> None:
        with self._lock:
            self._messages.append(message)

    def snapshot(self) -> List[ChatMessage]:
        with self._lock:
            return list(self._messages)

    def persist(self, path: PathLike) -> None:
        target = Path(path)
        tmp_path = target.with_name(f"{target.name}.{uuid4().hex}.tmp")
        with self._lock:
            payload = [m.to_dict() for m in self._messages]
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
                os.replace(tmp_path, target)
            except (OSError, ValueError) as e:
                # ValueError: 无法编码为 UTF-8 的内容（如孤立代理字符）
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
                raise PersistenceError(code="STORE_WRITE_ERROR", message=str(e), path=str(target)) from e

    def restore(self, path: PathLike) -> List[ChatMessage]:
        """从文件恢复会话，成功时整体替换内存中的日志。"""

        target = Path(path)
        try:
            raw = target.read_bytes()
        except FileNotFoundError as e:
            raise HistoryNotFoundError(code="HISTORY_NOT_FOUND", message=str(target), path=str(target)) from e
        except OSError as e:
            raise PersistenceError(code="STORE_READ_ERROR", message=str(e), path=str(target)) from e
        try:
            data = json.loads(raw.decode("utf-8"))
            if not isinstance(data, list):
                raise ValueError("history file must contain a JSON array")
            messages = [ChatMessage.from_dict(item) for item in data]
        except ValueError as e:
            raise HistoryParseError(code="HISTORY_PARSE_ERROR", message=str(e), path=str(target)) from e
        with self._lock:
            self._messages = messages
        return list(messages)

    def clear(self, path: PathLike) -> None:
        target = Path(path)
        with self._lock:
            self._messages = []
            try:
                target.unlink()
            except FileNotFoundError:
                return
            except OSError as e:
                raise PersistenceError(code="STORE_DELETE_ERROR", message=str(e), path=str(target)) from e
