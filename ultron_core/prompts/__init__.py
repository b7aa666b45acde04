"""系统提示词与初始任务加载工具。

包内自带一份默认提示词 default_prompt.md，用户配置的提示词文件不存在时
会先用默认内容创建该文件，之后始终从用户文件读取，方便直接修改。
"""

from pathlib import Path
from typing import Union

from ultron_core.infrastructure.logging.logger import logger


PROMPTS_DIR = Path(__file__).resolve().parent
DEFAULT_PROMPT_FILE = PROMPTS_DIR / "default_prompt.md"


def load_system_prompt(path: Union[str, Path]) -> str:
    """读取系统提示词；文件缺失时用默认提示词创建。

    读写失败时抛出 OSError，由配置解析层转换为 ConfigError。
    """

    prompt_path = Path(path).expanduser()
    if not prompt_path.exists():
        logger.info("prompt.create_default", extra={"extra": {"path": str(prompt_path)}})
        prompt_path.parent.mkdir(parents=True, exist_ok=True)
        prompt_path.write_text(DEFAULT_PROMPT_FILE.read_text(encoding="utf-8"), encoding="utf-8")
    return prompt_path.read_text(encoding="utf-8")


def load_initial_task(path: Union[str, Path]) -> str:
    """读取一次性初始任务，文件不存在时返回空字符串。"""

    task_path = Path(path).expanduser()
    if not task_path.exists():
        logger.info("prompt.initial_task.absent", extra={"extra": {"path": str(task_path)}})
        return ""
    return task_path.read_text(encoding="utf-8").strip()
