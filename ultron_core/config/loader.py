"""把 Settings 解析为只读的 RunConfig。

这里是唯一会抛出致命 ConfigError 的地方：未知 backend、缺失或占位的凭据、
不可读的提示词文件都会在控制循环启动前被拒绝。
"""

from pathlib import Path

from ultron_core.config.run_config import BackendConfig, LoopConfig, RunConfig, TurtleConfig
from ultron_core.config.settings import Settings
from ultron_core.domain.exceptions import ConfigError
from ultron_core.infrastructure.logging.logger import logger
from ultron_core.prompts import load_initial_task, load_system_prompt
from ultron_core.providers.registry import get_provider_config


DEFAULT_TURTLE_URL = "http://localhost:3300"
PLACEHOLDER_KEY = "default-key"
PLACEHOLDER_MODEL = "default-model"


def resolve_backend_config(settings: Settings) -> BackendConfig:
    kind = settings.backend
    try:
        defaults = get_provider_config(kind)
    except KeyError as exc:
        raise ConfigError(code="UNKNOWN_BACKEND", message=f"Unknown backend: {kind!r}") from exc

    api_key = getattr(settings, f"{kind}_api_key", None)
    model = getattr(settings, f"{kind}_model", None) or defaults.default_model
    base_url = getattr(settings, f"{kind}_base_url", None) or defaults.base_url

    if api_key == PLACEHOLDER_KEY and model == PLACEHOLDER_MODEL:
        raise ConfigError(
            code="DEFAULT_CREDENTIALS",
            message=f"Default values are used for {kind} API key and model. Please update them in the config file.",
        )
    if defaults.requires_api_key and not api_key:
        raise ConfigError(code="MISSING_API_KEY", message=f"{kind}_api_key not set")
    if not model:
        raise ConfigError(code="MISSING_MODEL", message=f"{kind}_model not set")
    if kind == "custom" and not base_url:
        raise ConfigError(code="MISSING_BASE_URL", message="custom_base_url not set")

    return BackendConfig(
        kind=kind,
        api_key=api_key,
        model=model,
        base_url=base_url.rstrip("/") if base_url else None,
        timeout=settings.http_timeout,
    )


def clean_turtle_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        return DEFAULT_TURTLE_URL
    return url.rstrip("/")


def resolve_run_config(settings: Settings) -> RunConfig:
    backend = resolve_backend_config(settings)

    try:
        system_prompt = load_system_prompt(settings.prompt_file)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(code="PROMPT_READ_ERROR", message=f"Failed to handle prompt file: {exc}") from exc
    if not system_prompt.strip():
        raise ConfigError(code="PROMPT_EMPTY", message=f"Prompt file {settings.prompt_file} is empty")

    try:
        initial_task = load_initial_task(settings.init_task_file)
    except (OSError, UnicodeDecodeError) as exc:
        # 初始任务是可选的，读取失败只记录日志
        logger.warning("config.initial_task.failed", extra={"extra": {"error": str(exc)}})
        initial_task = ""

    turtle = TurtleConfig(
        api_url=clean_turtle_url(settings.turtle_api_url),
        turtle_id=settings.turtle_id,
        timeout=settings.http_timeout,
    )
    loop = LoopConfig(
        system_prompt=system_prompt,
        history_file=Path(settings.history_file),
        initial_task=initial_task,
        completion_marker=settings.completion_marker,
        backoff_seconds=settings.backoff_seconds,
        settle_seconds=settings.settle_seconds,
    )
    logger.info(
        "config.resolved",
        extra={"extra": {"backend": backend.kind, "model": backend.model, "turtle": turtle.endpoint}},
    )
    return RunConfig(backend=backend, turtle=turtle, loop=loop, log_dir=settings.log_dir, debug=settings.debug)
