"""启动时解析完成的只读配置对象。

控制循环与各组件只消费这些 dataclass，不会重新读取配置文件。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class BackendConfig:
    """LLM Backend 配置，启动时选定后不再变化。

    Attributes:
        kind: openai / deepseek / custom。
        api_key: 访问凭据（custom 可为空）。
        model: 厂商模型 ID。
        base_url: 覆盖默认的 API 地址。
        timeout: 单次调用超时（秒）。
    """

    kind: str
    api_key: Optional[str]
    model: Optional[str]
    base_url: Optional[str] = None
    timeout: float = 30.0


@dataclass(frozen=True)
class TurtleConfig:
    api_url: str
    turtle_id: str
    timeout: float = 30.0

    @property
    def endpoint(self) -> str:
        return f"{self.api_url}/api/turtle/{self.turtle_id}"


@dataclass(frozen=True)
class LoopConfig:
    """控制循环参数。"""

    system_prompt: str
    history_file: Path = Path("conversation_history.json")
    initial_task: str = ""
    completion_marker: str = "task complete"
    backoff_seconds: float = 5.0
    settle_seconds: float = 5.0


@dataclass(frozen=True)
class RunConfig:
    backend: BackendConfig
    turtle: TurtleConfig
    loop: LoopConfig
    log_dir: str = "logs"
    debug: bool = False
