"""统一的对话数据模型。

本模块定义了控制循环内部在不同 Backend 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（system/user/assistant）。
- TurtleState / CommandBatch: 与 turtle 交互时使用的类型别名。

所有 Backend 适配器都只依赖这些模型，并负责在各自的 API JSON
和这些模型之间做转换（只有 role 与 content 会跨越边界）。
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, get_args


# LLM 消息角色类型（与 OpenAI / DeepSeek 等厂商的 role 字段对应）
Role = Literal["system", "user", "assistant"]

ROLES = frozenset(get_args(Role))

# turtle 返回的状态原文，核心逻辑不解析
TurtleState = str

# 一次提交给 turtle 的命令列表
CommandBatch = List[str]


@dataclass(frozen=True)
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色，如 system/user/assistant。
    - content: 纯文本内容。

    消息一旦追加到会话中就不可再修改，因此使用 frozen dataclass。
    """

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Any) -> "ChatMessage":
        """从持久化的 dict 恢复消息，字段不合法时抛出 ValueError。"""

        if not isinstance(data, dict):
            raise ValueError(f"message must be an object, got {type(data).__name__}")
        role = data.get("role")
        content = data.get("content")
        if role not in ROLES:
            raise ValueError(f"unknown message role: {role!r}")
        if not isinstance(content, str):
            raise ValueError("message content must be a string")
        return cls(role=role, content=content)
