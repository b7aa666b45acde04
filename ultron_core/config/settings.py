"""配置管理模块。

支持从环境变量（ULTRON_ 前缀）、.env 以及 config.yaml 加载配置。
优先级：显式参数 > 环境变量 > .env > config.yaml。
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from ultron_core.domain.exceptions import ConfigError


CONFIG_FILE_ENV = "ULTRON_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.yaml"

# 首次启动时写出的配置模板，占位凭据会在启动校验时被拒绝
DEFAULT_CONFIG: Dict[str, Any] = {
    "backend": "openai",
    "openai_api_key": "default-key",
    "openai_model": "default-model",
    "turtle_api_url": "http://localhost:3300/",
    "turtle_id": "0",
    "prompt_file": "./prompt.md",
}


def config_file_path() -> Path:
    """返回当前生效的配置文件路径（环境变量优先）。"""

    explicit = os.getenv(CONFIG_FILE_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return Path.cwd() / DEFAULT_CONFIG_FILE


def _load_config_from_yaml(path: Path) -> Dict[str, Any]:
    """读取 YAML 配置文件，文件不存在时返回空 dict。"""

    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(code="CONFIG_READ_ERROR", message=f"Failed to read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(code="CONFIG_INVALID", message=f"Config file {path} is not a mapping")
    return data


def write_default_config(path: Path) -> None:
    """写出默认配置模板。"""

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(code="CONFIG_WRITE_ERROR", message=f"Failed to write default config file: {exc}") from exc


class YamlFileSettingsSource(PydanticBaseSettingsSource):
    """把 config.yaml 作为 pydantic-settings 的一个配置来源。"""

    def __init__(self, settings_cls: type[BaseSettings]):
        super().__init__(settings_cls)
        self._data = _load_config_from_yaml(config_file_path())

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        return {k: v for k, v in self._data.items() if k in self.settings_cls.model_fields and v is not None}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Backend 选择 ----
    backend: str = Field(default="openai", description="LLM backend: openai / deepseek / custom")

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API 密钥")
    openai_model: Optional[str] = Field(default=None, description="OpenAI 模型 ID")
    openai_base_url: Optional[str] = Field(default=None, description="OpenAI API 基础URL（可选覆盖）")
    # DeepSeek
    deepseek_api_key: Optional[str] = Field(default=None, description="DeepSeek API 密钥")
    deepseek_model: Optional[str] = Field(default=None, description="DeepSeek 模型 ID")
    deepseek_base_url: Optional[str] = Field(default=None, description="DeepSeek API 基础URL（可选覆盖）")
    # 自定义 OpenAI 兼容服务
    custom_api_key: Optional[str] = Field(default=None, description="自定义服务 API 密钥")
    custom_model: Optional[str] = Field(default=None, description="自定义服务模型 ID")
    custom_base_url: Optional[str] = Field(default=None, description="自定义服务基础URL")

    # ---- Turtle ----
    turtle_api_url: str = Field(default="http://localhost:3300", description="turtle API 基础URL")
    turtle_id: str = Field(default="0", description="turtle 标识")

    # ---- 提示词与历史 ----
    prompt_file: str = Field(default="./prompt.md", description="系统提示词文件")
    init_task_file: str = Field(default="init-task.txt", description="一次性初始任务文件")
    history_file: str = Field(default="conversation_history.json", description="会话历史文件")
    completion_marker: str = Field(default="task complete", min_length=1, description="任务完成标记")

    # ---- 时间参数 ----
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")
    backoff_seconds: float = Field(default=5.0, ge=0.0, description="失败后的退避时间（秒）")
    settle_seconds: float = Field(default=5.0, ge=0.0, description="提交命令后等待 turtle 执行的时间（秒）")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")
    debug: bool = Field(default=False, description="调试模式，日志级别 DEBUG")

    model_config = SettingsConfigDict(
        env_prefix="ULTRON_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("backend")
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("turtle_id", mode="before")
    @classmethod
    def coerce_turtle_id(cls, v: Any) -> Any:
        # YAML 中 turtle_id: 3 会被解析成 int
        return str(v) if isinstance(v, int) else v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlFileSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(**overrides: Any) -> Settings:
    """加载配置，任何校验失败都转换为 ConfigError。"""

    try:
        return Settings(**overrides)
    except PydanticValidationError as exc:
        raise ConfigError(code="CONFIG_INVALID", message=str(exc)) from exc
